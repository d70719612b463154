"""Log slow queries and suggested indexes from the MongoDB Atlas Performance Advisor."""

from atlas_advisor.advisor import (
    get_data,
    get_primary,
    get_slow_queries,
    get_suggested_indexes,
    since_timestamp,
)
from atlas_advisor.client import AtlasAPIClient
from atlas_advisor.exceptions import (
    AdvisorError,
    AtlasHTTPError,
    AtlasRequestError,
    DecodeError,
    NamespaceError,
    PrimaryNotFoundError,
)

__version__ = "0.1.0"

__all__ = [
    "AdvisorError",
    "AtlasAPIClient",
    "AtlasHTTPError",
    "AtlasRequestError",
    "DecodeError",
    "NamespaceError",
    "PrimaryNotFoundError",
    "get_data",
    "get_primary",
    "get_slow_queries",
    "get_suggested_indexes",
    "since_timestamp",
]
