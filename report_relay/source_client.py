"""Client for the report portal's JSON search/detail endpoints."""
from typing import List, Optional

import requests

from report_relay import http
from report_relay.config import TenantConfig
from report_relay.errors import DetailNotFoundError
from report_relay.logging_conf import logger
from report_relay.models import Entity


class SourceClient:
    """Fetches report lists, report details and report images."""

    def __init__(self, tenant: TenantConfig, session: Optional[requests.Session] = None):
        self.tenant = tenant
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def search(self, limit: int) -> List[Entity]:
        """Fetch the current list of report summaries."""
        response = http.request(self.session, "GET", self.tenant.tenant_base_url, params={
            "format": "json", "action": "search", "limit": limit,
        })
        return [Entity.from_dict(item) for item in http.json_body(response)]

    def detail(self, entity_id) -> Entity:
        """Fetch the full record of one report."""
        logger.info(f'Fetching details for message "{entity_id}"')
        response = http.request(self.session, "GET", self.tenant.tenant_base_url, params={
            "format": "json", "action": "detail", "id": entity_id,
        })
        data = http.json_body(response)
        if not data:
            raise DetailNotFoundError(entity_id)
        logger.info(f'Received details for message "{entity_id}"')
        return Entity.from_dict(data[0])

    def fetch_media(self, media_id: str) -> bytes:
        """Download an image by media id."""
        logger.info(f'Fetching image "{media_id}"')
        response = http.request(
            self.session, "GET", f"{self.tenant.base_url}/IWImageLoader", params={"mediaId": media_id}
        )
        return response.content
