"""
Pytest configuration and shared fixtures for the Renstra planner.

This module provides:
- An isolated in-memory SQLite database per test (foreign keys enforced)
- Gateways bound to that database, with and without reference writes
- A seeded Kepmen 900 reference catalogue
- Environment configuration for tests
"""

import os
import sys
import warnings
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Suppress warnings during testing
warnings.filterwarnings("ignore", category=DeprecationWarning)
warnings.filterwarnings("ignore", category=PendingDeprecationWarning)

# Add src to path for imports
PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

# Set test environment variables before any imports
os.environ.update({
    "DATABASE_URL": "sqlite:///:memory:",
    "LOG_LEVEL": "WARNING",  # Reduce noise during tests
    "LOG_STRUCTURED": "false",
    "PROGRAM_PARENT_CODE_LENGTH": "4",
})

# Import after environment setup
from src.db.gateway import DataGateway
from src.db.models import Base
from src.db.session import enable_sqlite_foreign_keys
from src.services.field_mapping import reference_fields
from src.services.notifications import NotificationChannel


# ================================
# DATABASE FIXTURES
# ================================

@pytest.fixture
def test_engine() -> Generator[Engine, None, None]:
    """Fresh in-memory SQLite engine with every planning table."""
    engine = create_engine(
        "sqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False  # Set to True for SQL debugging
    )
    enable_sqlite_foreign_keys(engine)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_scope(test_engine):
    """Same commit/rollback contract as src.db.session.get_db_session, on the test engine."""
    factory = sessionmaker(bind=test_engine, autoflush=False, expire_on_commit=False)

    @contextmanager
    def _scope() -> Generator[Session, None, None]:
        db = factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    return _scope


@pytest.fixture
def gateway(session_scope) -> DataGateway:
    """Application gateway: reference tables are read-only."""
    return DataGateway(session_scope=session_scope)


@pytest.fixture
def reference_gateway(session_scope) -> DataGateway:
    """Gateway allowed to write Kepmen tables, as the importer uses."""
    return DataGateway(session_scope=session_scope, allow_reference_writes=True)


@pytest.fixture
def notifications() -> NotificationChannel:
    return NotificationChannel()


# ================================
# TEST DATA FIXTURES
# ================================

@pytest.fixture
def kepmen_reference(reference_gateway) -> Dict[str, Dict[str, Any]]:
    """
    Small Kepmen 900 catalogue.

    Returns the created rows keyed by a short alias.
    """
    urusan = reference_fields("urusan")
    program = reference_fields("program")
    kegiatan = reference_fields("kegiatan")

    rows = {
        "urusan_kesehatan": reference_gateway.create(urusan.table, {
            urusan.code_field: "1.02",
            urusan.name_field: "Urusan Pemerintahan Bidang Kesehatan",
        }),
        "urusan_pendidikan": reference_gateway.create(urusan.table, {
            urusan.code_field: "1.01",
            urusan.name_field: "Urusan Pemerintahan Bidang Pendidikan",
        }),
        "program_kesehatan": reference_gateway.create(program.table, {
            program.code_field: "1.02.02",
            program.name_field: "Program Pemenuhan Upaya Kesehatan Perorangan",
            program.sasaran_field: ["Meningkatnya derajat kesehatan masyarakat"],
            program.indikator_field: ["Angka kematian ibu", "Angka kematian bayi"],
            program.satuan_field: "per 100.000 KH",
        }),
        "program_short": reference_gateway.create(program.table, {
            program.code_field: "1.0",
            program.name_field: "Program dengan kode pendek",
        }),
        "kegiatan_kesehatan": reference_gateway.create(kegiatan.table, {
            kegiatan.code_field: "1.02.02.2.01",
            kegiatan.name_field: "Penyediaan Fasilitas Pelayanan Kesehatan",
            kegiatan.sasaran_field: ["Tersedianya fasilitas kesehatan"],
            kegiatan.indikator_field: ["Jumlah puskesmas"],
            kegiatan.satuan_field: "unit",
        }),
    }
    return rows
