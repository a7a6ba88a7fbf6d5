"""CS2 map metadata for coordinate transformation.

To convert game coordinates to overview coordinates:
    x = (game_x - pos_x) / scale
    y = (pos_y - game_y) / scale  # Y is inverted

Overview images are 1024x1024 pixels.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MAP_METADATA = {
    "de_ancient": {"pos_x": -2953, "pos_y": 2164, "scale": 5.0},
    "de_mirage": {"pos_x": -3230, "pos_y": 1713, "scale": 5.0},
    "de_inferno": {"pos_x": -2087, "pos_y": 3870, "scale": 4.9},
    "de_dust2": {"pos_x": -2476, "pos_y": 3239, "scale": 4.4},
    "de_anubis": {"pos_x": -2796, "pos_y": 3328, "scale": 5.22},
    "de_nuke": {"pos_x": -3453, "pos_y": 2887, "scale": 7.0},
    "de_overpass": {"pos_x": -4831, "pos_y": 1781, "scale": 5.2},
    "de_vertigo": {"pos_x": -3168, "pos_y": 1762, "scale": 4.0},
    "de_train": {"pos_x": -2477, "pos_y": 2392, "scale": 4.7},
    "cs_office": {"pos_x": -1838, "pos_y": 1858, "scale": 4.1},
    "cs_italy": {"pos_x": -2647, "pos_y": 2592, "scale": 4.6},
}

# Image dimensions (all CS2 overview images are 1024x1024)
OVERVIEW_IMAGE_SIZE = 1024


@dataclass(frozen=True)
class MapMetadata:
    name: str
    pos_x: float
    pos_y: float
    scale: float
    is_known: bool = True


def get_map_metadata(map_name: str) -> MapMetadata:
    """Get coordinate transformation metadata for a map.

    Unknown maps get a zero origin and unit scale, so translation degrades to
    a plain Y flip instead of failing.

    Args:
        map_name: Map name with or without the 'de_' prefix

    Returns:
        MapMetadata (``is_known`` is False for the fallback)
    """
    name = map_name.lower().strip()
    meta = MAP_METADATA.get(name) or MAP_METADATA.get(f"de_{name}")

    if meta is None:
        logger.warning(f"No map metadata for {map_name!r}, using zero origin and unit scale")
        return MapMetadata(name=name, pos_x=0.0, pos_y=0.0, scale=1.0, is_known=False)

    return MapMetadata(
        name=name,
        pos_x=float(meta["pos_x"]),
        pos_y=float(meta["pos_y"]),
        scale=float(meta["scale"]),
    )
