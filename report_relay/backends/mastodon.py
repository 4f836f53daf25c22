"""Mastodon long-status backend."""
from typing import Optional, Sequence, Tuple

import requests

from report_relay import http, settings
from report_relay.backends.base import PublishBackend
from report_relay.errors import PublishError
from report_relay.logging_conf import logger
from report_relay.render import TextLimits


class MastodonBackend(PublishBackend):
    name = "mastodon"
    limits = TextLimits(subject_with_image=444, subject=463, response_max=485, response_cut=480)

    def __init__(self, session: Optional[requests.Session] = None, api_url: str = None, access_token: str = None):
        self.api_url = (api_url or settings.MASTODON_API_URL or "").rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {access_token or settings.MASTODON_ACCESS_TOKEN}",
            "Accept": "application/json",
        })

    def upload(self, media: bytes, mime_type: str = "") -> str:
        logger.info("Uploading image to Mastodon")
        response = http.request(
            self.session, "POST", f"{self.api_url}/api/v1/media",
            error_class=PublishError, idempotent=False,
            files={"file": ("image", media, mime_type or "application/octet-stream")},
        )
        media_id = str(http.json_body(response, PublishError)["id"])
        logger.info("Image successfully sent to Mastodon")
        return media_id

    def publish(self, text: str, media_ids: Sequence[str] = (), reply_to: Optional[str] = None,
                location: Optional[Tuple[float, float]] = None):
        # Mastodon statuses carry no coordinates; location is ignored.
        logger.info("Sending toot...")
        logger.info(f'...with status "{text}"')

        body = {"status": text}
        if media_ids:
            logger.info(f'...with media "{",".join(media_ids)}"')
            body["media_ids"] = list(media_ids)
        if reply_to:
            body["in_reply_to_id"] = reply_to

        response = http.request(
            self.session, "POST", f"{self.api_url}/api/v1/statuses",
            error_class=PublishError, idempotent=False, json=body,
        )
        result = http.json_body(response, PublishError)
        if result.get("error"):
            raise PublishError(result["error"])

        logger.info(f"Toot successfully sent. id = {result['id']}")
        return str(result["id"]), result
