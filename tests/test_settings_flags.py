import pytest

from src.config.settings import Settings, settings


def test_hierarchy_settings_exist_and_defaults():
    # Ensure settings exist
    assert hasattr(settings, "program_parent_code_length")
    assert settings.program_parent_code_length == 4
    assert settings.cors_origins == ["*"]


def test_plan_years_are_not_configurable():
    assert not hasattr(settings, "renstra_years")


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("PROGRAM_PARENT_CODE_LENGTH", "7")
    monkeypatch.setenv("API_PORT", "9000")
    monkeypatch.setenv("CORS_ORIGINS", '["http://localhost:5173"]')

    fresh = Settings()

    assert fresh.program_parent_code_length == 7
    assert fresh.api_port == 9000
    assert fresh.cors_origins == ["http://localhost:5173"]


@pytest.mark.parametrize("raw, expected", [
    ("http://a.example,http://b.example", ["http://a.example", "http://b.example"]),
    (" http://a.example , ,http://b.example ", ["http://a.example", "http://b.example"]),
    ("*", ["*"]),
])
def test_cors_origins_accept_comma_separated_values(monkeypatch, raw, expected):
    monkeypatch.setenv("CORS_ORIGINS", raw)
    assert Settings().cors_origins == expected
