"""
identity_mapper.py – Source → destination id table for shared steps.

Filled by the shared-step pass, read by the test-case pass.  A key is
inserted at most once and never updated or removed during a run.
"""

from __future__ import annotations

import logging
import threading

from errors import DuplicateMappingError

logger = logging.getLogger("tc-migrator")


class IdentityMapper:
    """Holds the shared-step id mapping for one migration run."""

    def __init__(self) -> None:
        self._map: dict[int, int] = {}
        self._lock = threading.Lock()

    def put(self, source_id: int, destination_id: int) -> None:
        """Record *source_id* → *destination_id*; raise if already mapped."""
        with self._lock:
            existing = self._map.get(source_id)
            if existing is not None:
                raise DuplicateMappingError(source_id, existing, destination_id)
            self._map[source_id] = destination_id
        logger.debug("Mapped shared step %s → %s", source_id, destination_id)

    def get(self, source_id: int) -> int | None:
        return self._map.get(source_id)

    def as_dict(self) -> dict[int, int]:
        with self._lock:
            return dict(self._map)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._map

    def __len__(self) -> int:
        return len(self._map)
