"""SQLAlchemy models for the Renstra planner.

Three table sets share the Urusan → Program → Kegiatan → Sub-Kegiatan shape:

- ``kepmen_900_*``: immutable reference catalogue (Kepmen 900)
- ``master_*``: editable master data, linked to the parent level
- ``renstra_*``: strategic plan rows with N+1..N+4 targets and budgets
"""

from __future__ import annotations

import uuid
from typing import Dict, Optional, Type

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _budget_column() -> Column:
    return Column(Numeric(20, 2, asdecimal=False), default=0)


class RowMixin:
    """Identifier and timestamps carried by every table."""

    id = Column(String(36), primary_key=True, default=_new_id)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# ================================
# KEPMEN 900 (reference catalogue)
# ================================

class KepmenUrusan(RowMixin, Base):
    """Reference urusan (government affairs area)."""

    __tablename__ = "kepmen_900_urusan"

    kode_rek_900urusan = Column(String(50), nullable=False, index=True)
    uraian_900urusan = Column(Text, nullable=False)


class KepmenProgram(RowMixin, Base):
    """Reference program."""

    __tablename__ = "kepmen_900_prog"

    kode_rek_900prog = Column(String(50), nullable=False, index=True)
    uraian_900prog = Column(Text, nullable=False)
    sasaran_900prog = Column(JSON, default=list)
    indikator_900prog = Column(JSON, default=list)
    satuan_900prog = Column(String(100))


class KepmenKegiatan(RowMixin, Base):
    """Reference kegiatan (activity)."""

    __tablename__ = "kepmen_900_keg"

    kode_rek_900keg = Column(String(50), nullable=False, index=True)
    uraian_900keg = Column(Text, nullable=False)
    sasaran_900keg = Column(JSON, default=list)
    indikator_900keg = Column(JSON, default=list)
    satuan_900keg = Column(String(100))


class KepmenSubKegiatan(RowMixin, Base):
    """Reference sub-kegiatan (sub-activity)."""

    __tablename__ = "kepmen_900_subkeg"

    kode_rek_900subkeg = Column(String(50), nullable=False, index=True)
    uraian_900subkeg = Column(Text, nullable=False)
    sasaran_900subkeg = Column(JSON, default=list)
    indikator_900subkeg = Column(JSON, default=list)
    satuan_900subkeg = Column(String(100))


# ================================
# MASTER DATA
# ================================

class MasterUrusan(RowMixin, Base):
    """Top level of the master hierarchy; has no parent."""

    __tablename__ = "master_urusan"

    kode_rek_900urusan = Column(String(50), nullable=False, index=True)
    uraian_900urusan = Column(Text, nullable=False)


class MasterProgram(RowMixin, Base):
    __tablename__ = "master_prog"

    kode_rek_900prog = Column(String(50), nullable=False, index=True)
    uraian_900prog = Column(Text, nullable=False)
    sasaran_900prog = Column(JSON, default=list)
    indikator_900prog = Column(JSON, default=list)
    satuan_900prog = Column(String(100))
    urusan_id = Column(String(36), ForeignKey("master_urusan.id", ondelete="SET NULL"), index=True)


class MasterKegiatan(RowMixin, Base):
    __tablename__ = "master_keg"

    kode_rek_900keg = Column(String(50), nullable=False, index=True)
    uraian_900keg = Column(Text, nullable=False)
    sasaran_900keg = Column(JSON, default=list)
    indikator_900keg = Column(JSON, default=list)
    satuan_900keg = Column(String(100))
    program_id = Column(String(36), ForeignKey("master_prog.id", ondelete="SET NULL"), index=True)


class MasterSubKegiatan(RowMixin, Base):
    __tablename__ = "master_subkeg"

    kode_rek_900subkeg = Column(String(50), nullable=False, index=True)
    uraian_900subkeg = Column(Text, nullable=False)
    sasaran_900subkeg = Column(JSON, default=list)
    indikator_900subkeg = Column(JSON, default=list)
    satuan_900subkeg = Column(String(100))
    kegiatan_id = Column(String(36), ForeignKey("master_keg.id", ondelete="SET NULL"), index=True)


# ================================
# RENSTRA (strategic plan)
# ================================

class RenstraUrusan(RowMixin, Base):
    """Strategic plan urusan with four yearly targets and budgets."""

    __tablename__ = "renstra_urusan"

    renstra_kode_rek_urusan = Column(String(50), nullable=False, index=True)
    renstra_uraian_urusan = Column(Text, nullable=False)

    renstra_targetn1_urusan = Column(Text)
    renstra_targetn2_urusan = Column(Text)
    renstra_targetn3_urusan = Column(Text)
    renstra_targetn4_urusan = Column(Text)
    renstra_anggarann1_urusan = _budget_column()
    renstra_anggarann2_urusan = _budget_column()
    renstra_anggarann3_urusan = _budget_column()
    renstra_anggarann4_urusan = _budget_column()


class RenstraProgram(RowMixin, Base):
    __tablename__ = "renstra_prog"

    renstra_kode_rek_prog = Column(String(50), nullable=False, index=True)
    renstra_uraian_prog = Column(Text, nullable=False)
    renstra_sasaran_prog = Column(JSON, default=list)
    renstra_indikator_prog = Column(JSON, default=list)
    renstra_satuan_prog = Column(String(100))

    renstra_targetn1_prog = Column(Text)
    renstra_targetn2_prog = Column(Text)
    renstra_targetn3_prog = Column(Text)
    renstra_targetn4_prog = Column(Text)
    renstra_anggarann1_prog = _budget_column()
    renstra_anggarann2_prog = _budget_column()
    renstra_anggarann3_prog = _budget_column()
    renstra_anggarann4_prog = _budget_column()

    urusan_id = Column(String(36), ForeignKey("renstra_urusan.id", ondelete="SET NULL"), index=True)


class RenstraKegiatan(RowMixin, Base):
    __tablename__ = "renstra_keg"

    renstra_kode_rek_keg = Column(String(50), nullable=False, index=True)
    renstra_uraian_keg = Column(Text, nullable=False)
    renstra_sasaran_keg = Column(JSON, default=list)
    renstra_indikator_keg = Column(JSON, default=list)
    renstra_satuan_keg = Column(String(100))

    renstra_targetn1_keg = Column(Text)
    renstra_targetn2_keg = Column(Text)
    renstra_targetn3_keg = Column(Text)
    renstra_targetn4_keg = Column(Text)
    renstra_anggarann1_keg = _budget_column()
    renstra_anggarann2_keg = _budget_column()
    renstra_anggarann3_keg = _budget_column()
    renstra_anggarann4_keg = _budget_column()

    program_id = Column(String(36), ForeignKey("renstra_prog.id", ondelete="SET NULL"), index=True)


class RenstraSubKegiatan(RowMixin, Base):
    __tablename__ = "renstra_subkeg"

    renstra_kode_rek_subkeg = Column(String(50), nullable=False, index=True)
    renstra_uraian_subkeg = Column(Text, nullable=False)
    renstra_sasaran_subkeg = Column(JSON, default=list)
    renstra_indikator_subkeg = Column(JSON, default=list)
    renstra_satuan_subkeg = Column(String(100))

    renstra_targetn1_subkeg = Column(Text)
    renstra_targetn2_subkeg = Column(Text)
    renstra_targetn3_subkeg = Column(Text)
    renstra_targetn4_subkeg = Column(Text)
    renstra_anggarann1_subkeg = _budget_column()
    renstra_anggarann2_subkeg = _budget_column()
    renstra_anggarann3_subkeg = _budget_column()
    renstra_anggarann4_subkeg = _budget_column()

    kegiatan_id = Column(String(36), ForeignKey("renstra_keg.id", ondelete="SET NULL"), index=True)


MODELS_BY_TABLE: Dict[str, Type[Base]] = {
    model.__tablename__: model
    for model in (
        KepmenUrusan, KepmenProgram, KepmenKegiatan, KepmenSubKegiatan,
        MasterUrusan, MasterProgram, MasterKegiatan, MasterSubKegiatan,
        RenstraUrusan, RenstraProgram, RenstraKegiatan, RenstraSubKegiatan,
    )
}


def model_for_table(table: str) -> Optional[Type[Base]]:
    """Look up the ORM class mapped to a physical table name."""
    return MODELS_BY_TABLE.get(table)
