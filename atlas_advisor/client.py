"""Digest-authenticated transport for the Atlas Admin API"""

import logging
from typing import Optional

import requests
from requests.auth import HTTPDigestAuth

from atlas_advisor.exceptions import AtlasHTTPError, AtlasRequestError

# Constants
DEFAULT_BASE_URL = "https://cloud.mongodb.com/api/atlas/v1.0"
DEFAULT_TIMEOUT = 60  # seconds
JSON_HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}

logger = logging.getLogger(__name__)


class AtlasAPIClient:
    """Client for interacting with MongoDB Atlas API"""

    def __init__(self, public_key: str, private_key: str,
                 base_url: str = DEFAULT_BASE_URL, timeout: float = DEFAULT_TIMEOUT,
                 strict_status: bool = False, session: Optional[requests.Session] = None):
        self.public_key = public_key
        self.private_key = private_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.strict_status = strict_status
        self.session = session or requests.Session()
        self.session.auth = HTTPDigestAuth(public_key, private_key)

    def processes_url(self, project_id: str) -> str:
        return f"{self.base_url}/groups/{project_id}/processes/"

    def performance_advisor_url(self, project_id: str, process_id: str) -> str:
        return f"{self.base_url}/groups/{project_id}/processes/{process_id}/performanceAdvisor/"

    def get(self, uri: str) -> bytes:
        """
        GET a fully formed URI and return the raw body.

        The status code is not part of the contract: a non-2xx body is
        returned like any other unless the client is strict, so callers
        find out at decode time.
        """
        try:
            response = self.session.get(uri, headers=JSON_HEADERS, timeout=self.timeout)
            body = response.content
        except requests.exceptions.RequestException as e:
            raise AtlasRequestError(f"unable to make request: {e}") from e

        if not response.ok:
            if self.strict_status:
                raise AtlasHTTPError(response.status_code, uri, body)
            logger.warning("Atlas returned HTTP %s for %s", response.status_code, uri)
        return body

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
