from __future__ import annotations
"""
Form state for creating and editing hierarchy rows.

The form is a tagged union discriminated on ``level``; every variant knows
which fields it requires. Drafts are plain dicts while the user edits and are
validated into one of these models on submit.
"""

from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from ..services.field_mapping import PLAN_YEARS, FieldSet
from .hierarchy import HierarchyLevel


def split_lines(value: Any) -> List[str]:
    """Normalise multi-line text or a sequence into an ordered list of non-blank strings."""
    if value is None:
        return []
    items = value.splitlines() if isinstance(value, str) else list(value)
    return [str(item).strip() for item in items if str(item).strip()]


def parse_budget(value: Any) -> float:
    """Budgets typed into the form; anything unparsable counts as 0."""
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class YearlyTarget(BaseModel):
    """Target and budget for one plan year (N+1..N+4)."""
    target: str = ""
    budget: float = 0.0

    @field_validator("target", mode="before")
    @classmethod
    def _target_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("budget", mode="before")
    @classmethod
    def _budget_number(cls, v: Any) -> float:
        return parse_budget(v)


def empty_targets() -> List[YearlyTarget]:
    return [YearlyTarget() for _ in range(PLAN_YEARS)]


class HierarchyForm(BaseModel):
    code: str = Field(..., description="Kode rekening")
    name: str = Field(..., description="Uraian")
    targets: List[YearlyTarget] = Field(default_factory=empty_targets)

    @field_validator("code", "name")
    @classmethod
    def _required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("targets")
    @classmethod
    def _pad_targets(cls, v: List[YearlyTarget]) -> List[YearlyTarget]:
        if len(v) > PLAN_YEARS:
            raise ValueError(f"at most {PLAN_YEARS} yearly targets")
        return list(v) + [YearlyTarget() for _ in range(PLAN_YEARS - len(v))]

    def to_row(self, fields: FieldSet) -> Dict[str, Any]:
        """Map the form onto the columns of one table."""
        row: Dict[str, Any] = {
            fields.code_field: self.code,
            fields.name_field: self.name,
        }
        if fields.has_details:
            row[fields.sasaran_field] = list(getattr(self, "sasaran", []))
            row[fields.indikator_field] = list(getattr(self, "indikator", []))
            row[fields.satuan_field] = getattr(self, "satuan", "")
        if fields.parent_id_field:
            row[fields.parent_id_field] = getattr(self, "parent_id", None)
        for target, target_field, budget_field in zip(self.targets, fields.target_fields, fields.budget_fields):
            row[target_field] = target.target
            row[budget_field] = target.budget
        return row


class UrusanForm(HierarchyForm):
    level: Literal["urusan"] = "urusan"


class DetailForm(HierarchyForm):
    sasaran: List[str] = Field(default_factory=list)
    indikator: List[str] = Field(default_factory=list)
    satuan: str = ""

    @field_validator("sasaran", "indikator", mode="before")
    @classmethod
    def _lines(cls, v: Any) -> List[str]:
        return split_lines(v)

    @field_validator("satuan", mode="before")
    @classmethod
    def _satuan_text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()


class ProgramForm(DetailForm):
    level: Literal["program"] = "program"
    # Derived from the urusan code prefix; may stay empty
    parent_id: Optional[str] = None


class KegiatanForm(DetailForm):
    level: Literal["kegiatan"] = "kegiatan"
    parent_id: str = Field(..., min_length=1, description="Parent program id")


class SubKegiatanForm(DetailForm):
    level: Literal["sub-kegiatan"] = "sub-kegiatan"
    parent_id: str = Field(..., min_length=1, description="Parent kegiatan id")


FormState = Annotated[
    Union[UrusanForm, ProgramForm, KegiatanForm, SubKegiatanForm],
    Field(discriminator="level"),
]

_form_adapter = TypeAdapter(FormState)


def parse_form(data: Mapping[str, Any]) -> HierarchyForm:
    """Validate a draft into the form variant named by its ``level``."""
    return _form_adapter.validate_python(dict(data))


def empty_draft(level: HierarchyLevel) -> Dict[str, Any]:
    """Blank draft for a create form."""
    draft: Dict[str, Any] = {
        "level": level.value,
        "code": "",
        "name": "",
        "targets": [t.model_dump() for t in empty_targets()],
    }
    if level is not HierarchyLevel.URUSAN:
        draft.update({"sasaran": [], "indikator": [], "satuan": "", "parent_id": None})
    return draft


def draft_from_row(fields: FieldSet, row: Mapping[str, Any]) -> Dict[str, Any]:
    """Turn a persisted row into an editable draft (edit mode)."""
    draft = empty_draft(fields.level)
    draft["code"] = row.get(fields.code_field) or ""
    draft["name"] = row.get(fields.name_field) or ""
    if fields.has_details:
        draft["sasaran"] = split_lines(row.get(fields.sasaran_field))
        draft["indikator"] = split_lines(row.get(fields.indikator_field))
        draft["satuan"] = row.get(fields.satuan_field) or ""
    if fields.parent_id_field:
        draft["parent_id"] = row.get(fields.parent_id_field)
    if fields.target_fields:
        draft["targets"] = [
            {"target": row.get(t) or "", "budget": parse_budget(row.get(b))}
            for t, b in zip(fields.target_fields, fields.budget_fields)
        ]
    return draft
