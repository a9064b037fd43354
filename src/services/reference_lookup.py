"""
Kepmen 900 reference lookup.

Loads the immutable reference rows for a hierarchy level so a new master data
or Renstra row can be pre-filled from them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from ..db.gateway import DataAccessError, DataGateway
from ..schemas.forms import split_lines
from ..schemas.hierarchy import HierarchyLevel
from ..utils.logging import get_logger, log_error
from .field_mapping import FieldSet, reference_fields
from .notifications import NotificationChannel

logger = get_logger(__name__)


@dataclass
class ReferenceOption:
    """One Kepmen row, already translated out of its level-specific columns."""

    id: str
    code: str
    name: str
    sasaran: List[str] = field(default_factory=list)
    indikator: List[str] = field(default_factory=list)
    satuan: str = ""

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}"

    @classmethod
    def from_row(cls, fields: FieldSet, row: Mapping[str, Any]) -> "ReferenceOption":
        return cls(
            id=row["id"],
            code=row.get(fields.code_field) or "",
            name=row.get(fields.name_field) or "",
            sasaran=split_lines(row.get(fields.sasaran_field)) if fields.has_details else [],
            indikator=split_lines(row.get(fields.indikator_field)) if fields.has_details else [],
            satuan=(row.get(fields.satuan_field) or "") if fields.has_details else "",
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["label"] = self.label
        return data


class ReferenceLookup:
    """Fetches reference options and applies a chosen one to a draft."""

    def __init__(self, gateway: DataGateway, notifications: NotificationChannel):
        self.gateway = gateway
        self.notifications = notifications

    def load_options(
        self,
        level: Union[str, HierarchyLevel],
        include_top_level: bool = True,
    ) -> List[ReferenceOption]:
        """
        Load every reference row for a level.

        Args:
            level: Hierarchy level of the form being filled
            include_top_level: False for form variants without a reference
                selector on urusan; the lookup is then skipped

        Returns:
            Options ordered by code; empty when loading failed
        """
        fields = reference_fields(level)
        if fields.level is HierarchyLevel.URUSAN and not include_top_level:
            return []

        try:
            rows = self.gateway.fetch(fields.table)
        except DataAccessError as e:
            logger.error(
                f"Error loading reference options for {fields.level.value}: {e}",
                extra=log_error(e, table=fields.table),
            )
            self.notifications.error("Failed to load reference data")
            return []

        return [ReferenceOption.from_row(fields, row) for row in rows]

    def find_option(self, options: List[ReferenceOption], reference_id: str) -> Optional[ReferenceOption]:
        return next((opt for opt in options if opt.id == reference_id), None)


def apply_reference(draft: Mapping[str, Any], option: ReferenceOption) -> Dict[str, Any]:
    """
    Copy code, name, objectives, indicators and unit of a reference row into
    a draft, overwriting what the user typed. Other draft values are kept.
    """
    updated = dict(draft)
    updated["code"] = option.code
    updated["name"] = option.name
    if updated.get("level") != HierarchyLevel.URUSAN.value:
        updated["sasaran"] = list(option.sasaran)
        updated["indikator"] = list(option.indikator)
        updated["satuan"] = option.satuan
    return updated
