# src package initialization
"""
Renstra Planner - Source Package
Hierarchical master data (Urusan, Program, Kegiatan, Sub-Kegiatan) and
strategic plan (Renstra) editor backed by the Kepmen 900 reference catalogue.
"""

__version__ = "1.0.0"
__description__ = "Planning hierarchy and Renstra data-entry services"

__all__ = ["api", "config", "db", "schemas", "services", "utils"]
