"""Publishing of scored profiles to an external profile store"""

import logging
from typing import Dict, Any, Optional
from urllib.parse import urljoin

import requests

from .leaderboard import build_entry
from .models import ProfileAnalysis

logger = logging.getLogger(__name__)


class ProfilePublisher:
    """Upserts persisted profile records to an HTTP endpoint"""

    def __init__(self, publish_url: str, publish_token: Optional[str] = None,
                 auth_type: str = "bearer", custom_header: Optional[str] = None,
                 timeout: float = 15):
        """
        Initialize publisher

        Args:
            publish_url: Base URL of the profile store
            publish_token: Authentication token, omitted from headers when empty
            auth_type: Type of auth - "bearer" or "custom"
            custom_header: Custom header name if auth_type is "custom" (e.g., "X-API-Key")
            timeout: Request timeout in seconds
        """
        self.publish_url = publish_url.rstrip('/') + '/'
        self.publish_token = publish_token
        self.auth_type = auth_type.lower()
        self.custom_header = custom_header or "X-API-Key"
        self.timeout = timeout

    def publish(self, analysis: ProfileAnalysis) -> Dict[str, Any]:
        """
        Publish one scored profile

        Returns:
            Dict with the endpoint and the stored URL reported by the server
        """
        record = build_entry(analysis)
        record.pop("search_count")
        endpoint = urljoin(self.publish_url, f"profiles/{analysis.username}")

        response = requests.put(
            endpoint,
            headers=self._get_headers(),
            json=record,
            timeout=self.timeout,
        )
        response.raise_for_status()
        logger.debug("Published %s to %s", analysis.username, endpoint)

        return {
            "success": True,
            "endpoint": endpoint,
            "published_url": self._extract_published_url(response, endpoint),
        }

    def _get_headers(self) -> Dict[str, str]:
        """Get authentication headers based on auth type"""
        headers = {
            'User-Agent': 'gitproof/1.0',
            'Content-Type': 'application/json',
        }
        if not self.publish_token:
            return headers

        if self.auth_type == "custom":
            headers[self.custom_header] = self.publish_token
        else:
            headers['Authorization'] = f'Bearer {self.publish_token}'
        return headers

    def _extract_published_url(self, response: requests.Response, default_url: str) -> str:
        """Extract published URL from response or fall back to the endpoint"""
        if response.headers.get('Content-Type', '').startswith('application/json'):
            try:
                data = response.json()
            except ValueError:
                data = None
            if isinstance(data, dict):
                for key in ('url', 'published_url', 'location'):
                    if key in data:
                        return data[key]

        if 'Location' in response.headers:
            return response.headers['Location']
        return default_url
