"""Dashboard totals: rows per level and Renstra budgets per plan year."""

from __future__ import annotations

from typing import Any, Dict, Union

from ..db.gateway import DataGateway
from ..schemas.hierarchy import Dataset, HierarchyLevel
from .field_mapping import resolve_fields


def dataset_summary(gateway: DataGateway, dataset: Union[str, Dataset]) -> Dict[str, Any]:
    """
    Count rows per level of a dataset.

    For Renstra the N+1..N+4 budgets of every level are summed as well.

    Raises:
        DataAccessError: when any count or sum fails
    """
    dataset = Dataset(dataset)
    totals: Dict[str, int] = {}
    budgets: Dict[str, list] = {}

    for level in HierarchyLevel:
        fields = resolve_fields(level, dataset)
        totals[level.value] = gateway.count(fields.table)
        if fields.budget_fields:
            sums = gateway.sum_columns(fields.table, fields.budget_fields)
            budgets[level.value] = [sums[column] for column in fields.budget_fields]

    summary: Dict[str, Any] = {"dataset": dataset.value, "totals": totals}
    if budgets:
        summary["budgets"] = budgets
    return summary
