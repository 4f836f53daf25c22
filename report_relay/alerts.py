"""Slack alerting for failures worth a human look."""
from typing import Optional

import requests

from report_relay import settings
from report_relay.logging_conf import logger


class SlackAlerter:
    """Posts `<tenant>: <text>` to a Slack incoming webhook when enabled."""

    def __init__(self, tenant_key: str, webhook_url: Optional[str], enabled: bool = True, session=None):
        self.tenant_key = tenant_key
        self.webhook_url = webhook_url
        self.enabled = enabled and bool(webhook_url)
        self.session = session or requests.Session()

    def __call__(self, text: str) -> None:
        self.send(text)

    def send(self, text: str) -> None:
        if not self.enabled:
            return
        try:
            response = self.session.post(
                self.webhook_url,
                json={"text": f"{self.tenant_key}: {text}"},
                timeout=settings.REQUEST_TIMEOUT,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to send Slack alert: {e}")
