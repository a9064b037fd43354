"""Top-level routes and the grid each one mounts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..db.gateway import DataGateway
from ..schemas.hierarchy import Dataset
from .grid_orchestrator import HierarchyGrid
from .notifications import NotificationChannel


@dataclass(frozen=True)
class MenuItem:
    name: str
    path: str
    dataset: Optional[Dataset] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "grid": self.dataset.value if self.dataset else None,
        }


MENU_ITEMS: Tuple[MenuItem, ...] = (
    MenuItem("Dashboard", "/dashboard"),
    MenuItem("Master Data", "/master-data", Dataset.MASTER),
    MenuItem("Renstra", "/renstra", Dataset.RENSTRA),
    # Renja has a menu entry but no grid yet
    MenuItem("Renja", "/renja"),
)


def _normalize(route: str) -> str:
    return "/" + (route or "").strip().strip("/").lower()


def grid_for_route(route: str) -> Optional[Dataset]:
    """Dataset whose grid the route shows; None for dashboard, renja and unknown routes."""
    path = _normalize(route)
    return next((item.dataset for item in MENU_ITEMS if item.path == path), None)


def mount_grid(
    route: str,
    gateway: DataGateway,
    notifications: Optional[NotificationChannel] = None,
) -> Optional[HierarchyGrid]:
    """Build the grid for the active route, or None when the route has no grid."""
    dataset = grid_for_route(route)
    if dataset is None:
        return None
    return HierarchyGrid(dataset, gateway, notifications)
