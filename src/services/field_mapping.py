"""
Field mapping between hierarchy levels and physical tables.

Every (dataset, level) pair maps to one FieldSet naming the table and the
level-specific columns. The mapping is a literal table so column names are
never built by string interpolation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from ..schemas.hierarchy import Dataset, HierarchyLevel
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FieldSet:
    """Column names for one level of one dataset."""

    dataset: Dataset
    level: HierarchyLevel
    table: str
    code_field: str
    name_field: str
    sasaran_field: str = ""
    indikator_field: str = ""
    satuan_field: str = ""
    parent_id_field: str = ""
    target_fields: Tuple[str, ...] = ()
    budget_fields: Tuple[str, ...] = ()

    @property
    def has_details(self) -> bool:
        """True when the level carries sasaran/indikator/satuan."""
        return bool(self.sasaran_field)

    @property
    def list_fields(self) -> Tuple[str, ...]:
        return tuple(f for f in (self.sasaran_field, self.indikator_field) if f)


U, P, K, S = (
    HierarchyLevel.URUSAN,
    HierarchyLevel.PROGRAM,
    HierarchyLevel.KEGIATAN,
    HierarchyLevel.SUB_KEGIATAN,
)

FIELD_SETS: Dict[Tuple[Dataset, HierarchyLevel], FieldSet] = {
    # Kepmen 900 reference catalogue
    (Dataset.KEPMEN, U): FieldSet(
        Dataset.KEPMEN, U, "kepmen_900_urusan",
        code_field="kode_rek_900urusan",
        name_field="uraian_900urusan",
    ),
    (Dataset.KEPMEN, P): FieldSet(
        Dataset.KEPMEN, P, "kepmen_900_prog",
        code_field="kode_rek_900prog",
        name_field="uraian_900prog",
        sasaran_field="sasaran_900prog",
        indikator_field="indikator_900prog",
        satuan_field="satuan_900prog",
    ),
    (Dataset.KEPMEN, K): FieldSet(
        Dataset.KEPMEN, K, "kepmen_900_keg",
        code_field="kode_rek_900keg",
        name_field="uraian_900keg",
        sasaran_field="sasaran_900keg",
        indikator_field="indikator_900keg",
        satuan_field="satuan_900keg",
    ),
    (Dataset.KEPMEN, S): FieldSet(
        Dataset.KEPMEN, S, "kepmen_900_subkeg",
        code_field="kode_rek_900subkeg",
        name_field="uraian_900subkeg",
        sasaran_field="sasaran_900subkeg",
        indikator_field="indikator_900subkeg",
        satuan_field="satuan_900subkeg",
    ),
    # Master data
    (Dataset.MASTER, U): FieldSet(
        Dataset.MASTER, U, "master_urusan",
        code_field="kode_rek_900urusan",
        name_field="uraian_900urusan",
    ),
    (Dataset.MASTER, P): FieldSet(
        Dataset.MASTER, P, "master_prog",
        code_field="kode_rek_900prog",
        name_field="uraian_900prog",
        sasaran_field="sasaran_900prog",
        indikator_field="indikator_900prog",
        satuan_field="satuan_900prog",
        parent_id_field="urusan_id",
    ),
    (Dataset.MASTER, K): FieldSet(
        Dataset.MASTER, K, "master_keg",
        code_field="kode_rek_900keg",
        name_field="uraian_900keg",
        sasaran_field="sasaran_900keg",
        indikator_field="indikator_900keg",
        satuan_field="satuan_900keg",
        parent_id_field="program_id",
    ),
    (Dataset.MASTER, S): FieldSet(
        Dataset.MASTER, S, "master_subkeg",
        code_field="kode_rek_900subkeg",
        name_field="uraian_900subkeg",
        sasaran_field="sasaran_900subkeg",
        indikator_field="indikator_900subkeg",
        satuan_field="satuan_900subkeg",
        parent_id_field="kegiatan_id",
    ),
    # Renstra
    (Dataset.RENSTRA, U): FieldSet(
        Dataset.RENSTRA, U, "renstra_urusan",
        code_field="renstra_kode_rek_urusan",
        name_field="renstra_uraian_urusan",
        target_fields=(
            "renstra_targetn1_urusan", "renstra_targetn2_urusan",
            "renstra_targetn3_urusan", "renstra_targetn4_urusan",
        ),
        budget_fields=(
            "renstra_anggarann1_urusan", "renstra_anggarann2_urusan",
            "renstra_anggarann3_urusan", "renstra_anggarann4_urusan",
        ),
    ),
    (Dataset.RENSTRA, P): FieldSet(
        Dataset.RENSTRA, P, "renstra_prog",
        code_field="renstra_kode_rek_prog",
        name_field="renstra_uraian_prog",
        sasaran_field="renstra_sasaran_prog",
        indikator_field="renstra_indikator_prog",
        satuan_field="renstra_satuan_prog",
        parent_id_field="urusan_id",
        target_fields=(
            "renstra_targetn1_prog", "renstra_targetn2_prog",
            "renstra_targetn3_prog", "renstra_targetn4_prog",
        ),
        budget_fields=(
            "renstra_anggarann1_prog", "renstra_anggarann2_prog",
            "renstra_anggarann3_prog", "renstra_anggarann4_prog",
        ),
    ),
    (Dataset.RENSTRA, K): FieldSet(
        Dataset.RENSTRA, K, "renstra_keg",
        code_field="renstra_kode_rek_keg",
        name_field="renstra_uraian_keg",
        sasaran_field="renstra_sasaran_keg",
        indikator_field="renstra_indikator_keg",
        satuan_field="renstra_satuan_keg",
        parent_id_field="program_id",
        target_fields=(
            "renstra_targetn1_keg", "renstra_targetn2_keg",
            "renstra_targetn3_keg", "renstra_targetn4_keg",
        ),
        budget_fields=(
            "renstra_anggarann1_keg", "renstra_anggarann2_keg",
            "renstra_anggarann3_keg", "renstra_anggarann4_keg",
        ),
    ),
    (Dataset.RENSTRA, S): FieldSet(
        Dataset.RENSTRA, S, "renstra_subkeg",
        code_field="renstra_kode_rek_subkeg",
        name_field="renstra_uraian_subkeg",
        sasaran_field="renstra_sasaran_subkeg",
        indikator_field="renstra_indikator_subkeg",
        satuan_field="renstra_satuan_subkeg",
        parent_id_field="kegiatan_id",
        target_fields=(
            "renstra_targetn1_subkeg", "renstra_targetn2_subkeg",
            "renstra_targetn3_subkeg", "renstra_targetn4_subkeg",
        ),
        budget_fields=(
            "renstra_anggarann1_subkeg", "renstra_anggarann2_subkeg",
            "renstra_anggarann3_subkeg", "renstra_anggarann4_subkeg",
        ),
    ),
}

_BY_TABLE: Dict[str, FieldSet] = {fs.table: fs for fs in FIELD_SETS.values()}

# Plan years N+1..N+k, fixed by the targetn/anggarann columns of the Renstra tables
PLAN_YEARS = len(FIELD_SETS[(Dataset.RENSTRA, U)].target_fields)


def resolve_fields(
    level: Union[str, HierarchyLevel, None],
    dataset: Union[str, Dataset] = Dataset.MASTER,
) -> FieldSet:
    """
    Resolve the FieldSet of a level within a dataset.

    Unknown level strings fall back to the urusan mapping.
    """
    parsed = HierarchyLevel.parse(level)
    if parsed is None:
        logger.debug(f"Unknown hierarchy level {level!r}; using urusan mapping")
        parsed = HierarchyLevel.URUSAN
    return FIELD_SETS[(Dataset(dataset), parsed)]


def parent_fields(level: Union[str, HierarchyLevel], dataset: Union[str, Dataset]) -> Optional[FieldSet]:
    """FieldSet of the level one up in the same dataset, or None for urusan."""
    fields = resolve_fields(level, dataset)
    if fields.level.parent is None:
        return None
    return FIELD_SETS[(fields.dataset, fields.level.parent)]


def reference_fields(level: Union[str, HierarchyLevel]) -> FieldSet:
    """FieldSet of the Kepmen table backing a level."""
    return resolve_fields(level, Dataset.KEPMEN)


def field_set_for_table(table: str) -> Optional[FieldSet]:
    return _BY_TABLE.get(table)
