import json
import logging
from unittest import mock

import pytest

from atlas_advisor.client import AtlasAPIClient

PROJECT_ID = "5e2211c17a3e5a48f5497de3"
PRIMARY_ID = "cluster0-shard-00-01.abcde.mongodb.net:27017"


def make_response(payload, status=200):
    """A stand-in for requests.Response carrying a JSON (or raw) body"""
    if isinstance(payload, (bytes, str)):
        body = payload.encode() if isinstance(payload, str) else payload
    else:
        body = json.dumps(payload).encode()
    response = mock.Mock()
    response.content = body
    response.status_code = status
    response.ok = status < 400
    return response


class Routes:
    """Maps URL fragments to payloads; an Exception payload is raised"""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append(url)
        for fragment, payload in self.routes.items():
            if fragment in url:
                if isinstance(payload, Exception):
                    raise payload
                return payload if isinstance(payload, mock.Mock) else make_response(payload)
        raise AssertionError(f"unexpected request to {url}")


@pytest.fixture
def processes_payload():
    return {
        "results": [
            {"id": "cluster0-shard-00-00.abcde.mongodb.net:27017", "typeName": "REPLICA_SECONDARY",
             "hostname": "cluster0-shard-00-00.abcde.mongodb.net", "port": 27017},
            {"id": PRIMARY_ID, "typeName": "REPLICA_PRIMARY",
             "hostname": "cluster0-shard-00-01.abcde.mongodb.net", "port": 27017,
             "replicaSetName": "atlas-xyz-shard-0"},
            {"id": "cluster0-shard-00-02.abcde.mongodb.net:27017", "typeName": "REPLICA_PRIMARY"},
        ]
    }


@pytest.fixture
def slow_queries_payload():
    return {
        "slowQueries": [
            {"line": "db.coll1.find()", "namespace": "db1.coll1"},
        ]
    }


@pytest.fixture
def suggested_indexes_payload():
    return {
        "shapes": [
            {"id": "shapeA", "namespace": "db1.coll1", "avgMs": 42, "count": 7,
             "inefficiencyScore": 1500,
             "operations": [{"raw": "{\"find\": \"coll1\"}", "predicates": [{"find": {"a": 1}}],
                             "stats": {"ms": 40, "nReturned": 1, "nScanned": 1500, "ts": 1580000000000}}]},
            {"id": "shapeB", "namespace": "db1.coll1", "avgMs": 10, "count": 3, "inefficiencyScore": 200},
        ],
        "suggestedIndexes": [
            {"id": "idx1", "namespace": "db1.coll1", "index": [{"field1": 1}],
             "weight": 37.5, "impact": ["shapeA"]},
        ],
    }


@pytest.fixture
def session():
    return mock.Mock()


@pytest.fixture
def client(session):
    return AtlasAPIClient("public", "private", session=session)


@pytest.fixture
def route(session):
    """Install a Routes table on the mocked session and return it"""
    def install(routes):
        routes = Routes(routes)
        session.get.side_effect = routes
        return routes
    return install


@pytest.fixture
def advisor_logs(caplog):
    caplog.set_level(logging.DEBUG, logger="atlas_advisor")
    return caplog


@pytest.fixture(autouse=True)
def reset_advisor_logger():
    """Drop handlers the CLI installs so they don't outlive captured streams"""
    logger = logging.getLogger("atlas_advisor")
    before = list(logger.handlers)
    yield
    for handler in logger.handlers[:]:
        if handler not in before:
            logger.removeHandler(handler)
