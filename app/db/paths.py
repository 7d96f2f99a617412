"""
app/db/paths.py

Purpose: Collection, document and query references

- Immutable, hashable reference values built from slash-separated paths
- Collection paths have an odd number of segments, documents an even one
- Queries carry filters, ordering and a limit and translate to MongoDB
"""

import re
import secrets
import string
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

AUTO_ID_ALPHABET = string.ascii_letters + string.digits
AUTO_ID_LENGTH = 20

FILTER_OPERATORS = {
    "==": "$eq",
    "!=": "$ne",
    "<": "$lt",
    "<=": "$lte",
    ">": "$gt",
    ">=": "$gte",
    "in": "$in",
    "not-in": "$nin",
    "array-contains": "$eq",
}

Filter = Tuple[str, str, Any]


def new_document_id() -> str:
    """Random 20-character id, same shape as Firestore auto ids."""
    return "".join(secrets.choice(AUTO_ID_ALPHABET) for _ in range(AUTO_ID_LENGTH))


def split_path(path: str) -> List[str]:
    if not isinstance(path, str) or not path.strip("/"):
        raise ValueError(f"Invalid path: {path!r}")
    segments = path.strip("/").split("/")
    if any(not segment for segment in segments):
        raise ValueError(f"Path contains an empty segment: {path!r}")
    return segments


@dataclass(frozen=True)
class CollectionRef:
    path: str

    def __post_init__(self):
        segments = split_path(self.path)
        if len(segments) % 2 != 1:
            raise ValueError(f"Not a collection path: {self.path!r}")
        object.__setattr__(self, "path", "/".join(segments))

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> Optional["DocumentRef"]:
        if "/" not in self.path:
            return None
        return DocumentRef(self.path.rsplit("/", 1)[0])

    @property
    def storage_name(self) -> str:
        """MongoDB collection that holds this collection's documents."""
        return self.id

    def document(self, doc_id: Optional[str] = None) -> "DocumentRef":
        return DocumentRef(f"{self.path}/{doc_id or new_document_id()}")

    def where(self, field_path: str, op: str, value: Any) -> "Query":
        return Query(self).where(field_path, op, value)

    def order_by(self, field_path: str, direction: str = "asc") -> "Query":
        return Query(self).order_by(field_path, direction)

    def id_pattern(self) -> str:
        """Regex matching the storage ids of this collection's documents."""
        return f"^{re.escape(self.path)}/[^/]+$"


@dataclass(frozen=True)
class DocumentRef:
    path: str

    def __post_init__(self):
        segments = split_path(self.path)
        if len(segments) % 2 != 0:
            raise ValueError(f"Not a document path: {self.path!r}")
        object.__setattr__(self, "path", "/".join(segments))

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> CollectionRef:
        return CollectionRef(self.path.rsplit("/", 1)[0])

    def collection(self, name: str) -> CollectionRef:
        return CollectionRef(f"{self.path}/{name}")


def _freeze(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(value)
    return value


@dataclass(frozen=True)
class Query:
    ref: CollectionRef
    filters: Tuple[Filter, ...] = ()
    ordering: Tuple[Tuple[str, str], ...] = field(default=())
    limit_to: Optional[int] = None

    @property
    def path(self) -> str:
        return self.ref.path

    def where(self, field_path: str, op: str, value: Any) -> "Query":
        if op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {op}")
        return Query(self.ref, self.filters + ((field_path, op, _freeze(value)),), self.ordering, self.limit_to)

    def order_by(self, field_path: str, direction: str = "asc") -> "Query":
        if direction not in ("asc", "desc"):
            raise ValueError(f"Invalid order direction: {direction}")
        return Query(self.ref, self.filters, self.ordering + ((field_path, direction),), self.limit_to)

    def limit(self, count: int) -> "Query":
        if count <= 0:
            raise ValueError("Limit must be positive")
        return Query(self.ref, self.filters, self.ordering, count)

    def mongo_filter(self) -> Dict[str, Any]:
        conditions: Dict[str, Any] = {"_collection": self.ref.path}
        for field_path, op, value in self.filters:
            operator = FILTER_OPERATORS[op]
            if isinstance(value, tuple):
                value = list(value)
            conditions.setdefault(field_path, {})[operator] = value
        return conditions

    def mongo_sort(self) -> List[Tuple[str, int]]:
        sort = [(name, 1 if direction == "asc" else -1) for name, direction in self.ordering]
        # Stable order between otherwise equal documents
        sort.append(("_id", 1))
        return sort


Reference = Union[CollectionRef, DocumentRef, Query]


def as_query(target: Union[CollectionRef, Query]) -> Query:
    if isinstance(target, Query):
        return target
    if isinstance(target, CollectionRef):
        return Query(target)
    raise TypeError(f"Expected a collection or query reference, got {type(target).__name__}")


def collection(path: str) -> CollectionRef:
    return CollectionRef(path)


def document(path: str) -> DocumentRef:
    return DocumentRef(path)
