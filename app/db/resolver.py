"""
app/db/resolver.py

Purpose: Normalize subscription targets into stable references

Accepts a path string, a pre-built reference or None. The derived reference
is cached and only re-derived when the database handle or the input
identity changes, so re-resolving the same input never causes a new
subscription.
"""

from typing import Any, Literal, Optional, Union

from app.db.paths import CollectionRef, DocumentRef, Query

Target = Union[str, CollectionRef, DocumentRef, Query, None]
Kind = Literal["collection", "document"]

_UNSET = object()


def _same_input(previous: Any, current: Any) -> bool:
    if isinstance(previous, str) and isinstance(current, str):
        return previous == current
    return previous is current


class ReferenceResolver:

    def __init__(self, kind: Kind):
        if kind not in ("collection", "document"):
            raise ValueError(f"Unknown reference kind: {kind}")
        self.kind = kind
        self._db: Any = _UNSET
        self._target: Any = _UNSET
        self._resolved: Optional[Union[CollectionRef, DocumentRef, Query]] = None

    def resolve(self, db: Any, target: Target) -> Optional[Union[CollectionRef, DocumentRef, Query]]:
        if db is self._db and _same_input(self._target, target):
            return self._resolved

        self._db = db
        self._target = target
        self._resolved = self._derive(db, target)
        return self._resolved

    def _derive(self, db: Any, target: Target):
        if target is None:
            return None

        if isinstance(target, str):
            if db is None:
                return None
            return CollectionRef(target) if self.kind == "collection" else DocumentRef(target)

        if self.kind == "collection" and isinstance(target, (CollectionRef, Query)):
            return target
        if self.kind == "document" and isinstance(target, DocumentRef):
            return target

        raise TypeError(f"Cannot subscribe a {self.kind} listener to {type(target).__name__}")
