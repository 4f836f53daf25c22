"""Twitter/X short-status backend (v1.1 status and media endpoints)."""
import base64
from typing import Optional, Sequence, Tuple

import requests
from requests_oauthlib import OAuth1

from report_relay import http, settings
from report_relay.backends.base import PublishBackend
from report_relay.errors import PublishError
from report_relay.logging_conf import logger
from report_relay.render import TextLimits


class TwitterBackend(PublishBackend):
    name = "twitter"
    limits = TextLimits(subject_with_image=224, subject=234, response_max=265, response_cut=260)

    def __init__(self, session: Optional[requests.Session] = None, api_url: str = None, upload_url: str = None):
        self.api_url = api_url or settings.TWITTER_API_URL
        self.upload_url = upload_url or settings.TWITTER_UPLOAD_URL
        self.session = session or requests.Session()
        self.session.auth = OAuth1(
            settings.TWITTER_API_KEY,
            settings.TWITTER_API_SECRET,
            settings.TWITTER_ACCESS_TOKEN,
            settings.TWITTER_ACCESS_TOKEN_SECRET,
        )

    def upload(self, media: bytes, mime_type: str = "") -> str:
        logger.info("Uploading image to Twitter")
        response = http.request(
            self.session, "POST", f"{self.upload_url}/1.1/media/upload.json",
            error_class=PublishError, idempotent=False,
            data={"media_data": base64.b64encode(media).decode("ascii")},
        )
        media_id = http.json_body(response, PublishError)["media_id_string"]
        logger.info("Image successfully sent to Twitter")
        return media_id

    def publish(self, text: str, media_ids: Sequence[str] = (), reply_to: Optional[str] = None,
                location: Optional[Tuple[float, float]] = None):
        logger.info("Sending tweet...")
        logger.info(f'...with status "{text}"')

        params = {"status": text}
        if media_ids:
            logger.info(f'...with media "{",".join(media_ids)}"')
            params["media_ids"] = ",".join(media_ids)
        if reply_to:
            params["in_reply_to_status_id"] = reply_to
        if location:
            long, lat = location
            logger.info(f'...with coordinate lat="{lat}" long="{long}"')
            params.update(display_coordinates="true", lat=lat, long=long)

        response = http.request(
            self.session, "POST", f"{self.api_url}/1.1/statuses/update.json",
            error_class=PublishError, idempotent=False, data=params,
        )
        result = http.json_body(response, PublishError)
        logger.info(f"Tweet successfully sent. id = {result['id_str']}")
        return result["id_str"], result
