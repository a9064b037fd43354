from src.db.gateway import DataAccessError
from src.schemas.forms import empty_draft
from src.schemas.hierarchy import HierarchyLevel
from src.services.notifications import Severity
from src.services.reference_lookup import ReferenceLookup, ReferenceOption, apply_reference


def test_load_options_translates_columns(gateway, notifications, kepmen_reference):
    options = ReferenceLookup(gateway, notifications).load_options("program")

    assert [o.code for o in options] == ["1.0", "1.02.02"]
    program = options[1]
    assert program.id == kepmen_reference["program_kesehatan"]["id"]
    assert program.indikator == ["Angka kematian ibu", "Angka kematian bayi"]
    assert program.satuan == "per 100.000 KH"
    assert program.label == "1.02.02 - Program Pemenuhan Upaya Kesehatan Perorangan"


def test_urusan_options_have_no_details(gateway, notifications, kepmen_reference):
    options = ReferenceLookup(gateway, notifications).load_options("urusan")
    assert [o.code for o in options] == ["1.01", "1.02"]
    assert options[0].sasaran == [] and options[0].satuan == ""


def test_top_level_lookup_can_be_skipped(gateway, notifications, kepmen_reference, monkeypatch):
    calls = []
    monkeypatch.setattr(gateway, "fetch", lambda table, filters=None: calls.append(table) or [])

    lookup = ReferenceLookup(gateway, notifications)
    assert lookup.load_options("urusan", include_top_level=False) == []
    assert calls == []

    lookup.load_options("kegiatan", include_top_level=False)
    assert calls == ["kepmen_900_keg"]


def test_load_failure_notifies_and_returns_empty(gateway, notifications, monkeypatch):
    def broken_fetch(table, filters=None):
        raise DataAccessError("down", table=table, operation="fetch")

    monkeypatch.setattr(gateway, "fetch", broken_fetch)
    assert ReferenceLookup(gateway, notifications).load_options("program") == []

    [note] = notifications.drain()
    assert note.title == "Error"
    assert note.description == "Failed to load reference data"
    assert note.severity is Severity.DESTRUCTIVE


def test_find_option(gateway, notifications, kepmen_reference):
    lookup = ReferenceLookup(gateway, notifications)
    options = lookup.load_options("kegiatan")
    wanted = kepmen_reference["kegiatan_kesehatan"]["id"]
    assert lookup.find_option(options, wanted).code == "1.02.02.2.01"
    assert lookup.find_option(options, "missing") is None


def test_apply_reference_overwrites_user_input():
    draft = empty_draft(HierarchyLevel.PROGRAM)
    draft.update(code="typed", name="typed", sasaran=["typed"], satuan="typed", parent_id="p1")
    option = ReferenceOption(id="r1", code="1.02.02", name="Program", sasaran=["S"], indikator=["I"], satuan="%")

    updated = apply_reference(draft, option)

    assert updated["code"] == "1.02.02"
    assert updated["sasaran"] == ["S"]
    assert updated["indikator"] == ["I"]
    assert updated["satuan"] == "%"
    # Untouched fields survive
    assert updated["parent_id"] == "p1"
    # Input draft is not mutated
    assert draft["code"] == "typed"


def test_apply_reference_on_urusan_sets_code_and_name_only():
    option = ReferenceOption(id="r1", code="1.02", name="Kesehatan")
    updated = apply_reference(empty_draft(HierarchyLevel.URUSAN), option)
    assert updated["code"] == "1.02"
    assert "sasaran" not in updated
