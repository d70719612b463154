"""Errors raised by the Performance Advisor poller."""

from typing import Optional


class AdvisorError(Exception):
    """Base class for every error raised by atlas_advisor"""


class AtlasRequestError(AdvisorError):
    """The request could not be built, sent, or read"""


class AtlasHTTPError(AtlasRequestError):
    """Atlas answered with a non-2xx status (strict mode only)"""

    def __init__(self, status_code: int, url: str, body: bytes = b""):
        self.status_code = status_code
        self.url = url
        self.body = body
        super().__init__(f"{url} returned HTTP {status_code}")


class DecodeError(AdvisorError):
    """A response body did not match the expected JSON shape"""


class PrimaryNotFoundError(AdvisorError):
    """No process in the project reported itself as primary"""

    def __init__(self, project_id: Optional[str] = None):
        self.project_id = project_id
        super().__init__("No Primary Database found")


class NamespaceError(AdvisorError):
    """A namespace did not split into database and collection"""

    def __init__(self, namespace: str):
        self.namespace = namespace
        super().__init__(f"Malformed namespace {namespace!r}: expected <database>.<collection>")
