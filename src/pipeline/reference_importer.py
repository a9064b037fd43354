"""
Kepmen 900 reference importer.

Loads the reference catalogue from JSON into the kepmen tables. The file holds
one list per level::

    {
      "urusan": [{"code": "1.01", "name": "..."}],
      "program": [{"code": "1.01.02", "name": "...", "sasaran": ["..."],
                   "indikator": "line 1\\nline 2", "satuan": "%"}],
      "kegiatan": [...],
      "sub-kegiatan": [...]
    }

Items may also use the native column names (``kode_rek_900prog`` ...).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..db.gateway import DataAccessError, DataGateway
from ..schemas.forms import split_lines
from ..schemas.hierarchy import HierarchyLevel
from ..services.field_mapping import FieldSet, reference_fields
from ..utils.logging import get_logger

logger = get_logger(__name__)


class ReferenceImporter:
    """
    Imports reference rows into the kepmen tables.

    Keeps running totals in ``stats`` across calls:
    - rows_created: reference rows inserted
    - errors: sections or rows that could not be imported
    """

    def __init__(self, gateway: Optional[DataGateway] = None):
        """
        Initialize importer.

        Args:
            gateway: Optional gateway; must allow reference writes.
                Creates one bound to the default session if None.
        """
        self.gateway = gateway or DataGateway(allow_reference_writes=True)
        self.stats = {
            "rows_created": 0,
            "errors": 0,
        }

    def import_json_file(self, json_path: Path) -> bool:
        """
        Import a single JSON file.

        Args:
            json_path: Path to JSON file to process

        Returns:
            bool: True if every row was imported, False otherwise
        """
        logger.info(f"Importing reference data from: {json_path}")
        try:
            with open(json_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Cannot read {json_path}: {e}")
            self.stats["errors"] += 1
            return False

        return self.import_data(data)

    def import_data(self, data: Any) -> bool:
        """Import an already parsed payload; see module docstring for the shape."""
        if not isinstance(data, Mapping):
            logger.error("Reference payload must be an object keyed by level")
            self.stats["errors"] += 1
            return False

        errors_before = self.stats["errors"]
        for section, items in data.items():
            level = HierarchyLevel.parse(section)
            if level is None or not isinstance(items, list):
                logger.warning(f"Skipping unknown reference section: {section!r}")
                self.stats["errors"] += 1
                continue

            fields = reference_fields(level)
            for item in items:
                try:
                    self.gateway.create(fields.table, self._to_row(fields, item))
                    self.stats["rows_created"] += 1
                except (DataAccessError, AttributeError, KeyError) as e:
                    logger.error(f"Failed to import {level.value} item {item!r}: {e}")
                    self.stats["errors"] += 1

        logger.info(f"Reference import finished with stats: {self.stats}")
        return self.stats["errors"] == errors_before

    @staticmethod
    def _to_row(fields: FieldSet, item: Mapping[str, Any]) -> Dict[str, Any]:
        """Translate generic keys to the level's columns; native keys pass through."""
        generic = {
            "code": fields.code_field,
            "name": fields.name_field,
            "sasaran": fields.sasaran_field,
            "indikator": fields.indikator_field,
            "satuan": fields.satuan_field,
        }
        row: Dict[str, Any] = {}
        for key, value in item.items():
            column = generic.get(key, key)
            if not column:
                # Detail keys on urusan have no column
                continue
            row[column] = value

        for column in fields.list_fields:
            if column in row:
                row[column] = split_lines(row[column])

        if not row.get(fields.code_field) or not row.get(fields.name_field):
            raise KeyError("code and name are required")
        return row
