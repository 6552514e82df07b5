from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Protocol


class RecordStorePort(Protocol):
    """Append-only document store: one collection per record kind.

    Records created by the pipeline are never updated in place.
    """

    def add(self, collection: str, record: Dict[str, Any]) -> str:
        """Append a record and return its stable identifier."""
        ...

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        ...

    def find(self, collection: str, **filters: Any) -> List[Dict[str, Any]]:
        """Return records whose fields equal every filter value, newest first."""
        ...

    def delete(self, collection: str, ids: Iterable[str]) -> int:
        """Remove exactly the given records; returns how many were deleted."""
        ...
