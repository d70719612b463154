"""
Performance Advisor poller

Resolves the primary process of an Atlas project, then logs its slow queries
and suggested indexes since a number of hours ago.

Transport failures and a missing primary are fatal and propagate to the
caller. A payload that does not decode is logged as an error and the fetcher
moves on with nothing to report.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from atlas_advisor.client import AtlasAPIClient
from atlas_advisor.exceptions import DecodeError, NamespaceError, PrimaryNotFoundError
from atlas_advisor.log import with_fields
from atlas_advisor.models import (
    SlowQuery,
    SuggestedIndexesReport,
    SuggestedIndexMatch,
    decode_processes,
    decode_slow_queries,
    decode_suggested_indexes,
)

default_logger = logging.getLogger("atlas_advisor")


def since_timestamp(since_hours: float, now: Optional[datetime] = None) -> int:
    """Milliseconds since the epoch, since_hours before now"""
    now = now or datetime.now(timezone.utc)
    return int((now - timedelta(hours=since_hours)).timestamp() * 1000)


def get_primary(client: AtlasAPIClient, project_id: str,
                logger: Optional[logging.Logger] = None) -> str:
    """Return the id of the first process whose type label mentions primary"""
    logger = logger or default_logger
    body = client.get(client.processes_url(project_id))
    for process in decode_processes(body):
        if process.is_primary:
            logger.debug("Primary database found: %s", process.id,
                         extra=with_fields(hostname=process.hostname, port=process.port,
                                           replicaSet=process.replica_set_name,
                                           typeName=process.type_name))
            return process.id
    raise PrimaryNotFoundError(project_id)


def get_slow_queries(client: AtlasAPIClient, connection: str, since: int,
                     logger: Optional[logging.Logger] = None) -> List[SlowQuery]:
    """Log every slow query recorded on the primary since the given timestamp"""
    logger = logger or default_logger
    body = client.get(f"{connection}slowQueryLogs?since={since}")
    try:
        slow_queries = decode_slow_queries(body)
    except DecodeError as e:
        logger.error("Could not decode slow queries: %s", e)
        return []

    logged = []
    for query in slow_queries:
        try:
            fields = query.log_fields()
        except NamespaceError as e:
            logger.error("Skipping slow query: %s", e, extra=with_fields(line=query.line))
            continue
        logger.info("Slow Query found", extra=with_fields(**fields))
        logged.append(query)
    return logged


def get_suggested_indexes(client: AtlasAPIClient, connection: str, since: int,
                          logger: Optional[logging.Logger] = None) -> List[SuggestedIndexMatch]:
    """Log each suggested index once per shape it impacts"""
    logger = logger or default_logger
    body = client.get(f"{connection}suggestedIndexes?since={since}")
    try:
        report = decode_suggested_indexes(body)
    except DecodeError as e:
        logger.error("Could not decode suggested indexes: %s", e)
        report = SuggestedIndexesReport()

    logged = []
    for match in report.matches():
        try:
            fields = match.log_fields()
        except NamespaceError as e:
            logger.error("Skipping suggested index: %s", e,
                         extra=with_fields(id=match.suggestion.id, impact=match.shape.id))
            continue
        logger.info("Suggested index found.", extra=with_fields(**fields))
        logged.append(match)
    return logged


def _fetch_concurrently(client: AtlasAPIClient, connection: str, since: int,
                        logger: logging.Logger):
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="advisor") as pool:
        futures = [
            pool.submit(get_slow_queries, client, connection, since, logger),
            pool.submit(get_suggested_indexes, client, connection, since, logger),
        ]
    # Both fetches have finished here; surface the first fatal error
    for future in futures:
        future.result()


def get_data(project_id: str, public_key: str, private_key: str, since_hours: float,
             client: Optional[AtlasAPIClient] = None, logger: Optional[logging.Logger] = None,
             concurrent: bool = False, now: Optional[datetime] = None):
    """
    Poll the Performance Advisor of a project's primary and log the results.

    Raises AtlasRequestError or PrimaryNotFoundError when the primary can't
    be resolved (nothing else is fetched then), and AtlasRequestError when
    either fetch fails at the transport level.
    """
    logger = logger or default_logger
    since = since_timestamp(since_hours, now)
    owns_client = client is None
    if owns_client:
        client = AtlasAPIClient(public_key, private_key)

    try:
        primary = get_primary(client, project_id, logger)
        connection = client.performance_advisor_url(project_id, primary)

        if concurrent:
            _fetch_concurrently(client, connection, since, logger)
        else:
            get_slow_queries(client, connection, since, logger)
            get_suggested_indexes(client, connection, since, logger)
    finally:
        if owns_client:
            client.close()
