import pytest
from pydantic import ValidationError

from src.schemas.forms import (
    KegiatanForm,
    ProgramForm,
    UrusanForm,
    draft_from_row,
    empty_draft,
    parse_form,
    split_lines,
)
from src.schemas.hierarchy import HierarchyLevel
from src.services.field_mapping import PLAN_YEARS, resolve_fields


def test_split_lines_drops_blank_lines_and_keeps_order():
    assert split_lines("  satu \n\n dua\r\ntiga  \n") == ["satu", "dua", "tiga"]
    assert split_lines(["a", " ", "b "]) == ["a", "b"]
    assert split_lines(None) == []


def test_parse_form_dispatches_on_level():
    assert isinstance(parse_form({"level": "urusan", "code": "1.01", "name": "Pendidikan"}), UrusanForm)
    form = parse_form({"level": "program", "code": "1.01.02", "name": "Program"})
    assert isinstance(form, ProgramForm)
    assert form.parent_id is None
    assert form.level == "program"


def test_unknown_level_is_rejected():
    with pytest.raises(ValidationError):
        parse_form({"level": "bidang", "code": "1", "name": "x"})


def test_code_and_name_are_required():
    with pytest.raises(ValidationError) as exc:
        parse_form({"level": "urusan", "code": "  ", "name": ""})
    fields = {err["loc"][-1] for err in exc.value.errors()}
    assert fields == {"code", "name"}


def test_kegiatan_requires_parent():
    with pytest.raises(ValidationError):
        parse_form({"level": "kegiatan", "code": "1.01.02.2.01", "name": "Kegiatan"})
    form = parse_form({"level": "kegiatan", "code": "1.01.02.2.01", "name": "Kegiatan", "parent_id": "p1"})
    assert isinstance(form, KegiatanForm)


def test_multiline_text_becomes_lists():
    form = parse_form({
        "level": "program",
        "code": "1.02.02",
        "name": "Program",
        "sasaran": "Sasaran satu\n\nSasaran dua",
        "indikator": ["Indikator"],
        "satuan": " % ",
    })
    assert form.sasaran == ["Sasaran satu", "Sasaran dua"]
    assert form.indikator == ["Indikator"]
    assert form.satuan == "%"


def test_targets_are_padded_to_four_years():
    form = parse_form({
        "level": "urusan", "code": "1.01", "name": "Pendidikan",
        "targets": [{"target": "90%", "budget": "1500000"}],
    })
    assert len(form.targets) == 4
    assert form.targets[0].budget == 1500000.0
    assert form.targets[3].target == ""


def test_too_many_targets_rejected():
    with pytest.raises(ValidationError):
        parse_form({"level": "urusan", "code": "1", "name": "x", "targets": [{}] * 5})


def test_unparsable_budget_counts_as_zero():
    form = parse_form({
        "level": "urusan", "code": "1", "name": "x",
        "targets": [{"target": None, "budget": "abc"}],
    })
    assert form.targets[0].budget == 0.0
    assert form.targets[0].target == ""


def test_to_row_renstra_program():
    fields = resolve_fields("program", "renstra")
    form = parse_form({
        "level": "program",
        "code": "1.02.02",
        "name": "Program Kesehatan",
        "sasaran": ["S1"],
        "indikator": ["I1", "I2"],
        "satuan": "%",
        "parent_id": "u1",
        "targets": [{"target": f"T{i}", "budget": i * 1000} for i in range(1, 5)],
    })
    row = form.to_row(fields)
    assert row["renstra_kode_rek_prog"] == "1.02.02"
    assert row["renstra_indikator_prog"] == ["I1", "I2"]
    assert row["urusan_id"] == "u1"
    assert row["renstra_targetn3_prog"] == "T3"
    assert row["renstra_anggarann4_prog"] == 4000.0


def test_to_row_master_urusan_has_only_code_and_name():
    row = parse_form({"level": "urusan", "code": "1.01", "name": "Pendidikan"}).to_row(
        resolve_fields("urusan", "master-data")
    )
    assert row == {"kode_rek_900urusan": "1.01", "uraian_900urusan": "Pendidikan"}


def test_empty_draft_shapes():
    assert "sasaran" not in empty_draft(HierarchyLevel.URUSAN)
    draft = empty_draft(HierarchyLevel.SUB_KEGIATAN)
    assert draft["level"] == "sub-kegiatan"
    assert draft["parent_id"] is None
    assert len(draft["targets"]) == 4


def test_draft_from_row_round_trips_to_form():
    fields = resolve_fields("kegiatan", "renstra")
    row = {
        "id": "k1",
        "renstra_kode_rek_keg": "1.02.02.2.01",
        "renstra_uraian_keg": "Kegiatan",
        "renstra_sasaran_keg": ["S"],
        "renstra_indikator_keg": None,
        "renstra_satuan_keg": None,
        "program_id": "p1",
        "renstra_targetn1_keg": "10",
        "renstra_anggarann1_keg": 2500.0,
    }
    draft = draft_from_row(fields, row)
    assert draft["indikator"] == []
    assert draft["satuan"] == ""
    assert draft["targets"][0] == {"target": "10", "budget": 2500.0}
    assert draft["targets"][1] == {"target": "", "budget": 0.0}

    assert parse_form(draft).to_row(fields)["program_id"] == "p1"


@pytest.mark.parametrize("level", ["urusan", "program", "kegiatan", "sub-kegiatan"])
def test_plan_years_match_renstra_columns(level):
    fields = resolve_fields(level, "renstra")
    assert len(fields.target_fields) == len(fields.budget_fields) == PLAN_YEARS == 4
    assert len(empty_draft(fields.level)["targets"]) == PLAN_YEARS


def test_renstra_edit_keeps_every_plan_year():
    fields = resolve_fields("sub-kegiatan", "renstra")
    row = {fields.code_field: "1.02.02.2.01.01", fields.name_field: "Sub", fields.parent_id_field: "k1"}
    for year, (target_field, budget_field) in enumerate(zip(fields.target_fields, fields.budget_fields), 1):
        row[target_field] = f"T{year}"
        row[budget_field] = year * 100.0

    stored = parse_form(draft_from_row(fields, row)).to_row(fields)

    assert [stored[t] for t in fields.target_fields] == ["T1", "T2", "T3", "T4"]
    assert [stored[b] for b in fields.budget_fields] == [100.0, 200.0, 300.0, 400.0]
