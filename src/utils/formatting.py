"""Display helpers for grid output."""

from __future__ import annotations

from typing import Any, Iterable, Optional


def format_rupiah(value: Optional[float]) -> str:
    """Format a budget as Indonesian Rupiah without decimals, e.g. ``Rp 1.500.000``."""
    amount = round(float(value or 0))
    sign = "-" if amount < 0 else ""
    grouped = f"{abs(amount):,}".replace(",", ".")
    return f"{sign}Rp {grouped}"


def join_items(items: Optional[Iterable[Any]]) -> str:
    """Render an objectives/indicators list on one line."""
    return ", ".join(str(item) for item in (items or []))
