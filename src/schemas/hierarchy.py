from __future__ import annotations
"""Hierarchy levels and dataset kinds shared by every layer."""

import enum
from typing import Optional, Union


class HierarchyLevel(str, enum.Enum):
    """The four nested planning levels, outermost first."""
    URUSAN = "urusan"
    PROGRAM = "program"
    KEGIATAN = "kegiatan"
    SUB_KEGIATAN = "sub-kegiatan"

    @classmethod
    def parse(cls, value: Union[str, "HierarchyLevel", None]) -> Optional["HierarchyLevel"]:
        """Return the matching level or None for unknown input."""
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None

    @property
    def parent(self) -> Optional["HierarchyLevel"]:
        order = list(HierarchyLevel)
        index = order.index(self)
        return order[index - 1] if index > 0 else None

    @property
    def label(self) -> str:
        return {
            HierarchyLevel.URUSAN: "Urusan",
            HierarchyLevel.PROGRAM: "Program",
            HierarchyLevel.KEGIATAN: "Kegiatan",
            HierarchyLevel.SUB_KEGIATAN: "Sub-Kegiatan",
        }[self]


class Dataset(str, enum.Enum):
    """Kinds of table sets; each has one table per level."""
    KEPMEN = "kepmen"
    MASTER = "master-data"
    RENSTRA = "renstra"

    @property
    def editable(self) -> bool:
        return self is not Dataset.KEPMEN
