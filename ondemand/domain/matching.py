"""
Spatial Binning for the Pending Pool
====================================

Every booking stores the H3 hexagon (resolution 7, ~5.16 km²) of its
pickup point.  A provider asking for work "near me" is translated into the
set of cells within ``rings`` hex-steps of the provider's own cell, and
the pool query becomes an indexed ``IN`` filter on that column.

Complexity
----------
* Cell lookup:      O(1)         -- one H3 call
* Neighbourhood:    O(r^2)       -- 3r(r+1)+1 cells for r rings

**Note:** hexagon neighbourhoods approximate a radius; a pickup just past
the outer ring edge may be excluded even if its haversine distance is
below ``rings`` x cell edge length.  The poll interval keeps this cheap
to widen on the client side.
"""

from __future__ import annotations

import h3


def pickup_cell(lat: float, lng: float, resolution: int = 7) -> str:
    """Map a geo-point to an H3 hexagonal cell index.  O(1)."""
    return h3.latlng_to_cell(lat, lng, resolution)


def nearby_cells(
    lat: float, lng: float, rings: int = 1, resolution: int = 7
) -> set[str]:
    """Cells within *rings* hex-steps of the cell containing the point."""
    if rings < 0:
        raise ValueError("rings must be >= 0")
    return set(h3.grid_disk(pickup_cell(lat, lng, resolution), rings))
