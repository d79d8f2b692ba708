"""
canvas/selection.py

Selected element ids and the single active element derived from them.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple


class Selection:
    """
    Ordered set of selected element ids.

    The active element (target of the property panels) is defined only when
    exactly one element is selected; a multi-selection has no active element.
    """

    def __init__(self):
        self._ids: List[str] = []

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(self._ids)

    @property
    def active(self) -> Optional[str]:
        return self._ids[0] if len(self._ids) == 1 else None

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, element_id: str) -> bool:
        return element_id in self._ids

    def set(self, ids: Iterable[str]) -> bool:
        """Replace the selection. Returns True if it changed."""
        new_ids: List[str] = []
        for i in ids:
            if i not in new_ids:
                new_ids.append(i)
        if new_ids == self._ids:
            return False
        self._ids = new_ids
        return True

    def toggle(self, element_id: str) -> bool:
        """Add or remove one id without touching the others."""
        if element_id in self._ids:
            self._ids.remove(element_id)
        else:
            self._ids.append(element_id)
        return True

    def discard(self, element_id: str) -> bool:
        if element_id in self._ids:
            self._ids.remove(element_id)
            return True
        return False

    def clear(self) -> bool:
        if not self._ids:
            return False
        self._ids = []
        return True
