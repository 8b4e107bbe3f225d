"""Slot table for one template expansion."""

from __future__ import annotations

from typing import AbstractSet, List, Optional


class SlotTable:
    """Ordered, contiguous 1-based parameter slots plus an optional rest slot.

    Parameter names are generated from ``prefix`` and never collide with any
    name in ``taken`` (identifiers the template or its enclosing scope use).
    Slots only ever grow: ``ensure_slot`` backfills gaps, nothing is reused
    or reordered.
    """

    def __init__(self, prefix: str = "_hole", taken: AbstractSet[str] = frozenset()):
        self.prefix = prefix
        self._taken = set(taken)
        self._slots: List[str] = []
        self._variadic: Optional[str] = None

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def params(self) -> List[str]:
        return list(self._slots)

    @property
    def variadic(self) -> Optional[str]:
        return self._variadic

    def allocate_next(self) -> str:
        return self._push()

    def ensure_slot(self, index: int) -> str:
        if index < 1:
            raise ValueError(f"slot index must be positive, got {index}")

        while len(self._slots) < index:
            self._push()

        return self._slots[index - 1]

    def mark_variadic(self) -> str:
        if self._variadic is None:
            self._variadic = self._fresh(f"{self.prefix}s")
        return self._variadic

    def _push(self) -> str:
        name = self._fresh(f"{self.prefix}{len(self._slots) + 1}")
        self._slots.append(name)
        return name

    def _fresh(self, base: str) -> str:
        name = base
        while name in self._taken:
            name += "_"
        self._taken.add(name)
        return name
