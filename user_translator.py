"""
user_translator.py – Maps source display names to destination display names
for the AssignedTo field.  Names that are identical in both systems need no
entry in the map.
"""

from __future__ import annotations

from collections.abc import Mapping


class UserTranslator:
    """Read-only lookup over the user-name map loaded at start-up."""

    def __init__(self, user_map: Mapping[str, str] | None = None) -> None:
        self._map: dict[str, str] = dict(user_map or {})

    def resolve(self, name: str | None) -> str | None:
        """Return the destination display name for *name*.

        Falls back to *name* itself when there is no (non-empty) mapping.
        """
        if not name:
            return name
        mapped = self._map.get(name)
        if mapped:
            return mapped
        return name

    def __len__(self) -> int:
        return len(self._map)
