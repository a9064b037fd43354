"""
Parent resolution for new hierarchy rows.

A program's parent urusan is derived from the first characters of the chosen
reference code. Kegiatan and sub-kegiatan parents are picked explicitly from
the persisted rows one level up.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Union

from ..config.settings import settings
from ..db.gateway import DataAccessError, DataGateway
from ..schemas.hierarchy import Dataset, HierarchyLevel
from ..utils.logging import get_logger, log_error
from .field_mapping import parent_fields
from .notifications import NotificationChannel
from .reference_lookup import ReferenceOption

logger = get_logger(__name__)


@dataclass
class ParentOption:
    id: str
    code: str
    name: str

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["label"] = self.label
        return data


class ParentResolver:
    """Finds the persisted parent row for a hierarchy row."""

    def __init__(
        self,
        gateway: DataGateway,
        notifications: Optional[NotificationChannel] = None,
        prefix_length: Optional[int] = None,
    ):
        self.gateway = gateway
        self.notifications = notifications
        self.prefix_length = prefix_length or settings.program_parent_code_length

    def resolve_parent(
        self,
        level: Union[str, HierarchyLevel],
        reference: ReferenceOption,
        dataset: Union[str, Dataset] = Dataset.RENSTRA,
    ) -> Optional[str]:
        """
        Derive the parent id for a row seeded from a reference option.

        Only programs are derived: the first ``prefix_length`` characters of
        the reference code must equal an urusan code exactly. No match gives
        None. Other levels always give None.

        Raises:
            DataAccessError: when the urusan lookup itself fails
        """
        if HierarchyLevel.parse(level) is not HierarchyLevel.PROGRAM:
            return None

        prefix = (reference.code or "")[: self.prefix_length]
        if not prefix:
            return None

        parent = parent_fields(HierarchyLevel.PROGRAM, dataset)
        rows = self.gateway.fetch(parent.table, filters={parent.code_field: prefix})
        if not rows:
            logger.debug(f"No urusan with code {prefix!r} in {parent.table}")
            return None
        return rows[0]["id"]

    def load_parent_options(
        self,
        level: Union[str, HierarchyLevel],
        dataset: Union[str, Dataset] = Dataset.RENSTRA,
    ) -> List[ParentOption]:
        """Persisted rows one level up, for explicit parent selection."""
        parent = parent_fields(level, dataset)
        if parent is None:
            return []

        try:
            rows = self.gateway.fetch(parent.table)
        except DataAccessError as e:
            logger.error(
                f"Error loading parent options from {parent.table}: {e}",
                extra=log_error(e, table=parent.table),
            )
            if self.notifications is not None:
                self.notifications.error("Failed to load parent data")
            return []

        return [
            ParentOption(
                id=row["id"],
                code=row.get(parent.code_field) or "",
                name=row.get(parent.name_field) or "",
            )
            for row in rows
        ]
