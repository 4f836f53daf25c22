"""Coordinate conversion for report positions."""
from functools import lru_cache
from typing import Optional, Tuple

from pyproj import Transformer

from report_relay.models import Entity

WGS84 = "EPSG:4326"
UTM32 = "EPSG:25832"
SUPPORTED_SYSTEMS = (WGS84, UTM32)


@lru_cache(maxsize=None)
def _transformer(from_system: str) -> Transformer:
    return Transformer.from_crs(from_system, WGS84, always_xy=True)


def reproject(point: Tuple[float, float], from_system: str) -> Tuple[float, float]:
    """Convert an (x, y) / (long, lat) point to WGS 84 (long, lat)."""
    if from_system == WGS84:
        return point
    if from_system not in SUPPORTED_SYSTEMS:
        raise ValueError(f"Unsupported coordinate system: {from_system}")
    return _transformer(from_system).transform(*point)


def entity_location(entity: Entity) -> Optional[Tuple[float, float]]:
    """Return the report position as WGS 84 (long, lat), if it has a usable one."""
    position = entity.position
    if position is None or position.coordinate_system not in SUPPORTED_SYSTEMS:
        return None
    return reproject((position.longitude, position.latitude), position.coordinate_system)
