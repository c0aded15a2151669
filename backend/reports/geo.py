"""
Operating-area checks for report locations.

The boundary is a polygon of ``(longitude, latitude)`` vertices taken
from ``settings.MUNICIPALITY_BOUNDARY``.

Also holds the grid clustering used by the zoomed-out report map.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from django.conf import settings


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """Latitude in [-90, 90] and longitude in [-180, 180]."""
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        return False
    if lat != lat or lon != lon:  # NaN
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def point_in_polygon(longitude: float, latitude: float, polygon: Sequence[tuple[float, float]]) -> bool:
    """
    Even-odd ray casting test.

    Points lying exactly on an edge may fall either way.
    """
    inside = False
    count = len(polygon)
    if count < 3:
        return False

    j = count - 1
    for i in range(count):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        if (yi > latitude) != (yj > latitude):
            crossing = (xj - xi) * (latitude - yi) / (yj - yi) + xi
            if longitude < crossing:
                inside = not inside
        j = i
    return inside


def is_within_municipality(latitude: float, longitude: float) -> bool:
    """True if the coordinate is valid and lies inside the operating area."""
    if not is_valid_coordinate(latitude, longitude):
        return False
    return point_in_polygon(float(longitude), float(latitude), settings.MUNICIPALITY_BOUNDARY)


# ── Map clustering ──────────────────────────────────────────────────

MIN_ZOOM = 1
MAX_ZOOM = 20

#: Zoom levels at or below this one get clusters instead of reports.
CLUSTER_MAX_ZOOM = 12


def grid_cell_size(zoom: float) -> float:
    """Edge of a cluster cell in degrees: 0.01 at ``CLUSTER_MAX_ZOOM``, doubling per level out."""
    return 0.01 * 2 ** (CLUSTER_MAX_ZOOM - zoom)


def cluster_points(points: Iterable[tuple[int, float, float]], zoom: float) -> list[dict]:
    """
    Group ``(id, latitude, longitude)`` points on a square degree grid.

    Each cluster is centred on the mean position of its members.  The
    result is ordered by size, largest first.
    """
    cell = grid_cell_size(zoom)
    cells: dict[tuple[int, int], list[tuple[int, float, float]]] = {}
    for pk, lat, lon in points:
        key = (math.floor(lat / cell), math.floor(lon / cell))
        cells.setdefault(key, []).append((pk, lat, lon))

    clusters = []
    for members in cells.values():
        lat = sum(m[1] for m in members) / len(members)
        lon = sum(m[2] for m in members) / len(members)
        clusters.append({
            "cluster_id": f"cluster_{lat:.3f}_{lon:.3f}",
            "location": {"latitude": round(lat, 6), "longitude": round(lon, 6)},
            "report_count": len(members),
            "report_ids": sorted(m[0] for m in members),
        })
    clusters.sort(key=lambda c: (-c["report_count"], c["cluster_id"]))
    return clusters
