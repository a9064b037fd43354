"""
Grid and form orchestration for one dataset (master data or Renstra).

Owns the per-session state of a grid: the active hierarchy level, the loaded
rows, load state, selection, search text and the edit dialog. It wires the
gateway, the field mapping, the reference lookup and the parent resolver
together and reports every outcome on the injected notification channel.

States::

    load:  idle -> loading -> loaded
    form:  closed -> open(create | edit, selected row) -> closed
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from ..db.gateway import DataAccessError, DataGateway, DeleteResult
from ..schemas.forms import draft_from_row, empty_draft, parse_form
from ..schemas.hierarchy import Dataset, HierarchyLevel
from ..utils.logging import get_logger, log_error
from .field_mapping import FieldSet, resolve_fields
from .notifications import NotificationChannel
from .parent_resolution import ParentOption, ParentResolver
from .reference_lookup import ReferenceLookup, ReferenceOption, apply_reference

logger = get_logger(__name__)


class LoadState(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"


class FormMode(str, enum.Enum):
    CREATE = "create"
    EDIT = "edit"


@dataclass
class FormSession:
    """An open edit dialog."""

    mode: FormMode
    level: HierarchyLevel
    draft: Dict[str, Any]
    selected_item: Optional[Dict[str, Any]] = None
    reference_options: List[ReferenceOption] = field(default_factory=list)
    parent_options: List[ParentOption] = field(default_factory=list)
    selected_reference_id: Optional[str] = None


def filter_rows(rows: List[Dict[str, Any]], search: str, fields: FieldSet) -> List[Dict[str, Any]]:
    """Case-insensitive substring match over the code and name columns only."""
    term = (search or "").strip().lower()
    if not term:
        return list(rows)
    return [
        row for row in rows
        if term in str(row.get(fields.code_field) or "").lower()
        or term in str(row.get(fields.name_field) or "").lower()
    ]


class HierarchyGrid:
    """Stateful controller behind one data grid and its edit form."""

    def __init__(
        self,
        dataset: Union[str, Dataset],
        gateway: DataGateway,
        notifications: Optional[NotificationChannel] = None,
        reference_lookup: Optional[ReferenceLookup] = None,
        parent_resolver: Optional[ParentResolver] = None,
        level: Union[str, HierarchyLevel] = HierarchyLevel.URUSAN,
    ):
        self.dataset = Dataset(dataset)
        if not self.dataset.editable:
            raise ValueError(f"Dataset {self.dataset.value} is read-only")

        self.gateway = gateway
        self.notifications = notifications if notifications is not None else NotificationChannel()
        self.reference_lookup = reference_lookup if reference_lookup is not None else ReferenceLookup(gateway, self.notifications)
        self.parent_resolver = parent_resolver if parent_resolver is not None else ParentResolver(gateway, self.notifications)

        self.level = resolve_fields(level, self.dataset).level
        self.load_state = LoadState.IDLE
        self.rows: List[Dict[str, Any]] = []
        self.search = ""
        self.form: Optional[FormSession] = None
        # Insertion-ordered set of row ids
        self._selection: Dict[str, None] = {}

    # ------------------------------------------------------------------
    # grid
    # ------------------------------------------------------------------

    @property
    def fields(self) -> FieldSet:
        return resolve_fields(self.level, self.dataset)

    @property
    def selection(self) -> List[str]:
        return list(self._selection)

    @property
    def visible_rows(self) -> List[Dict[str, Any]]:
        return filter_rows(self.rows, self.search, self.fields)

    @property
    def can_edit(self) -> bool:
        return len(self._selection) == 1

    @property
    def can_delete(self) -> bool:
        return len(self._selection) > 0

    def set_level(self, level: Union[str, HierarchyLevel]) -> bool:
        """Switch hierarchy level; clears selection and reloads."""
        self.level = resolve_fields(level, self.dataset).level
        self._selection.clear()
        self.form = None
        return self.load()

    def load(self) -> bool:
        """Fetch the rows of the active level ordered by code."""
        fields = self.fields
        self.load_state = LoadState.LOADING
        try:
            self.rows = self.gateway.fetch(fields.table)
            return True
        except DataAccessError as e:
            logger.error(f"Error loading data: {e}", extra=log_error(e, table=fields.table))
            self.notifications.error("Failed to load data")
            return False
        finally:
            self.load_state = LoadState.LOADED

    def set_search(self, term: str) -> None:
        self.search = term or ""

    def toggle_selection(self, item_id: str) -> None:
        if item_id in self._selection:
            del self._selection[item_id]
        else:
            self._selection[item_id] = None

    def clear_selection(self) -> None:
        self._selection.clear()

    # ------------------------------------------------------------------
    # form
    # ------------------------------------------------------------------

    @property
    def form_open(self) -> bool:
        return self.form is not None

    def _require_form(self) -> FormSession:
        if self.form is None:
            raise RuntimeError("No form is open")
        return self.form

    def _form_options(self):
        # The master data form has no reference selector for urusan
        include_top_level = self.dataset is Dataset.RENSTRA
        references = self.reference_lookup.load_options(self.level, include_top_level=include_top_level)
        parents = self.parent_resolver.load_parent_options(self.level, self.dataset)
        return references, parents

    def open_create(self) -> FormSession:
        references, parents = self._form_options()
        self.form = FormSession(
            mode=FormMode.CREATE,
            level=self.level,
            draft=empty_draft(self.level),
            reference_options=references,
            parent_options=parents,
        )
        return self.form

    def open_edit(self) -> bool:
        """Open the form on the single selected row; False when the selection does not allow it."""
        if not self.can_edit:
            return False
        item_id = self.selection[0]
        row = next((r for r in self.rows if r.get("id") == item_id), None)
        if row is None:
            return False

        references, parents = self._form_options()
        self.form = FormSession(
            mode=FormMode.EDIT,
            level=self.level,
            draft=draft_from_row(self.fields, row),
            selected_item=row,
            reference_options=references,
            parent_options=parents,
        )
        return True

    def edit_row(self, item_id: str) -> bool:
        """Row-level edit action: select exactly this row and open it."""
        self._selection = {item_id: None}
        return self.open_edit()

    def close_form(self) -> None:
        self.form = None

    def update_draft(self, **values: Any) -> Dict[str, Any]:
        form = self._require_form()
        form.draft.update(values)
        return form.draft

    def set_parent(self, parent_id: Optional[str]) -> None:
        self.update_draft(parent_id=parent_id)

    def select_reference(self, reference_id: str) -> bool:
        """
        Seed the draft from a reference option.

        Overwrites code, name, objectives, indicators and unit. For programs
        the parent urusan is derived from the reference code.
        """
        form = self._require_form()
        option = self.reference_lookup.find_option(form.reference_options, reference_id)
        if option is None:
            return False

        form.selected_reference_id = reference_id
        form.draft = apply_reference(form.draft, option)

        if form.level is HierarchyLevel.PROGRAM:
            try:
                parent_id = self.parent_resolver.resolve_parent(form.level, option, self.dataset)
            except DataAccessError as e:
                logger.error(f"Error resolving parent urusan: {e}", extra=log_error(e))
                self.notifications.error("Failed to load parent data")
                parent_id = None
            form.draft["parent_id"] = parent_id
        return True

    def submit(self) -> bool:
        """
        Validate and persist the draft.

        On success the form closes and the grid reloads; on failure the form
        stays open with an error notification.
        """
        form = self._require_form()
        fields = self.fields

        try:
            state = parse_form(form.draft)
        except ValidationError as e:
            missing = sorted({str(err["loc"][-1]) for err in e.errors() if err.get("loc")})
            logger.info(f"Rejected {form.level.value} form: {missing}")
            self.notifications.error(f"Please complete: {', '.join(missing)}" if missing else "Failed to save data")
            return False

        row = state.to_row(fields)
        try:
            if form.mode is FormMode.CREATE:
                self.gateway.create(fields.table, row)
                self.notifications.success("Item created successfully")
            else:
                self.gateway.update(fields.table, form.selected_item["id"], row)
                self.notifications.success("Item updated successfully")
        except DataAccessError as e:
            logger.error(f"Error saving data: {e}", extra=log_error(e, table=fields.table))
            self.notifications.error("Failed to save data")
            return False

        self.form = None
        if form.mode is FormMode.CREATE:
            self._selection.clear()
        self.load()
        return True

    # ------------------------------------------------------------------
    # delete
    # ------------------------------------------------------------------

    def delete_selected(self) -> List[DeleteResult]:
        """
        Delete every selected row, one request per id.

        Shows a single aggregate notification; the per-id outcome is returned.
        Rows deleted before a failure stay deleted.
        """
        if not self.can_delete:
            return []

        table = self.fields.table
        results = self.gateway.delete_many(table, self.selection)

        if all(r.ok for r in results):
            self.notifications.success("Items deleted successfully")
        else:
            self.notifications.error("Failed to delete items")

        for result in results:
            if result.ok:
                self._selection.pop(result.id, None)

        self.load()
        return results

