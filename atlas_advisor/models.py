"""
Response records for the Atlas processes and Performance Advisor endpoints.

Every record is a frozen dataclass built from the decoded JSON with
``from_dict``. Missing keys fall back to empty values (``""``, ``0``, ``[]``)
so a sparse payload still decodes; a key holding the wrong JSON type raises
DecodeError.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple, Union

from atlas_advisor.exceptions import DecodeError, NamespaceError

Number = Union[int, float]


def _object(value: Any, what: str) -> Dict:
    if not isinstance(value, dict):
        raise DecodeError(f"{what}: expected object, got {type(value).__name__}")
    return value


def _string(data: Dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"{key}: expected string, got {type(value).__name__}")
    return value


def _number(data: Dict, key: str) -> Number:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"{key}: expected number, got {type(value).__name__}")
    return value


def _array(data: Dict, key: str) -> List:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(f"{key}: expected array, got {type(value).__name__}")
    return value


def decode_json(body: Union[bytes, str]) -> Dict:
    """Parse a response body into a JSON object"""
    try:
        data = json.loads(body)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"invalid JSON response: {e}") from e
    return _object(data, "response")


def split_namespace(namespace: str) -> Tuple[str, str]:
    """Database and collection are the first two dot-separated segments"""
    parts = namespace.split(".")
    if len(parts) < 2:
        raise NamespaceError(namespace)
    return parts[0], parts[1]


def index_spec_string(index: Iterable[Dict[str, Any]]) -> str:
    """Concatenate the compact JSON form of each index key, e.g. {"a":1}{"b":-1}"""
    return "".join(json.dumps(key, separators=(",", ":"), sort_keys=True, ensure_ascii=False) for key in index)


@dataclass(frozen=True)
class Process:
    """A mongod/mongos process listed under a project"""
    id: str
    type_name: str
    hostname: str = ""
    port: Number = 0
    replica_set_name: str = ""

    @property
    def is_primary(self) -> bool:
        return "primary" in self.type_name.lower()

    @classmethod
    def from_dict(cls, data: Any) -> "Process":
        data = _object(data, "process")
        return cls(
            id=_string(data, "id"),
            type_name=_string(data, "typeName"),
            hostname=_string(data, "hostname"),
            port=_number(data, "port"),
            replica_set_name=_string(data, "replicaSetName"),
        )


def decode_processes(body: Union[bytes, str]) -> List[Process]:
    data = decode_json(body)
    return [Process.from_dict(p) for p in _array(data, "results")]


@dataclass(frozen=True)
class SlowQuery:
    """One slow query log line"""
    line: str
    namespace: str

    @classmethod
    def from_dict(cls, data: Any) -> "SlowQuery":
        data = _object(data, "slow query")
        return cls(line=_string(data, "line"), namespace=_string(data, "namespace"))

    def log_fields(self) -> Dict[str, Any]:
        database, collection = split_namespace(self.namespace)
        return {"line": self.line, "database": database, "collection": collection}


def decode_slow_queries(body: Union[bytes, str]) -> List[SlowQuery]:
    data = decode_json(body)
    return [SlowQuery.from_dict(q) for q in _array(data, "slowQueries")]


@dataclass(frozen=True)
class OperationStats:
    ms: Number = 0
    n_returned: Number = 0
    n_scanned: Number = 0
    ts: Number = 0

    @classmethod
    def from_dict(cls, data: Any) -> "OperationStats":
        data = _object(data, "stats")
        return cls(
            ms=_number(data, "ms"),
            n_returned=_number(data, "nReturned"),
            n_scanned=_number(data, "nScanned"),
            ts=_number(data, "ts"),
        )


@dataclass(frozen=True)
class ShapeOperation:
    """A sample operation behind a query shape"""
    raw: str = ""
    predicates: Tuple[Dict[str, Any], ...] = ()
    stats: OperationStats = field(default_factory=OperationStats)

    @classmethod
    def from_dict(cls, data: Any) -> "ShapeOperation":
        data = _object(data, "operation")
        stats = data.get("stats")
        return cls(
            raw=_string(data, "raw"),
            predicates=tuple(_object(p, "predicate") for p in _array(data, "predicates")),
            stats=OperationStats.from_dict(stats) if stats is not None else OperationStats(),
        )


@dataclass(frozen=True)
class QueryShape:
    """A normalized query pattern with aggregated statistics"""
    id: str
    namespace: str = ""
    avg_ms: Number = 0
    count: Number = 0
    inefficiency_score: Number = 0
    operations: Tuple[ShapeOperation, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "QueryShape":
        data = _object(data, "shape")
        return cls(
            id=_string(data, "id"),
            namespace=_string(data, "namespace"),
            avg_ms=_number(data, "avgMs"),
            count=_number(data, "count"),
            inefficiency_score=_number(data, "inefficiencyScore"),
            operations=tuple(ShapeOperation.from_dict(o) for o in _array(data, "operations")),
        )


@dataclass(frozen=True)
class SuggestedIndex:
    """An index recommendation and the shapes it would help"""
    id: str
    namespace: str = ""
    index: Tuple[Dict[str, Any], ...] = ()
    weight: Number = 0
    impact: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "SuggestedIndex":
        data = _object(data, "suggested index")
        impact = _array(data, "impact")
        for shape_id in impact:
            if not isinstance(shape_id, str):
                raise DecodeError(f"impact: expected string, got {type(shape_id).__name__}")
        return cls(
            id=_string(data, "id"),
            namespace=_string(data, "namespace"),
            index=tuple(_object(key, "index key") for key in _array(data, "index")),
            weight=_number(data, "weight"),
            impact=tuple(impact),
        )

    @property
    def index_spec(self) -> str:
        return index_spec_string(self.index)


@dataclass(frozen=True)
class SuggestedIndexMatch:
    """A suggestion paired with one of the shapes listed in its impact"""
    suggestion: SuggestedIndex
    shape: QueryShape

    def log_fields(self) -> Dict[str, Any]:
        database, collection = split_namespace(self.suggestion.namespace)
        return {
            "id": self.suggestion.id,
            "impact": self.shape.id,
            "index": self.suggestion.index_spec,
            "database": database,
            "collection": collection,
            "weight": self.suggestion.weight,
            "avgMs": self.shape.avg_ms,
            "count": self.shape.count,
            "inefficiencyScore": self.shape.inefficiency_score,
        }


@dataclass(frozen=True)
class SuggestedIndexesReport:
    """Payload of the suggestedIndexes endpoint"""
    shapes: Tuple[QueryShape, ...] = ()
    suggested_indexes: Tuple[SuggestedIndex, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> "SuggestedIndexesReport":
        data = _object(data, "response")
        return cls(
            shapes=tuple(QueryShape.from_dict(s) for s in _array(data, "shapes")),
            suggested_indexes=tuple(SuggestedIndex.from_dict(s) for s in _array(data, "suggestedIndexes")),
        )

    def matches(self) -> List[SuggestedIndexMatch]:
        """Every (suggestion, shape) pair where the shape id is in the suggestion's impact"""
        found = []
        for suggestion in self.suggested_indexes:
            for impact in suggestion.impact:
                for shape in self.shapes:
                    if shape.id == impact:
                        found.append(SuggestedIndexMatch(suggestion, shape))
        return found


def decode_suggested_indexes(body: Union[bytes, str]) -> SuggestedIndexesReport:
    return SuggestedIndexesReport.from_dict(decode_json(body))
