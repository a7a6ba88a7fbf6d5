"""
Match export for overview renderers.

The JSON layout is compact: map transform and rates once at the top, then one
entry per frame using the short keys of ``OverviewState.to_dict``. Positions
stay in world coordinates; renderers apply ``map.pos_x/pos_y/scale``.
"""

from __future__ import annotations

import gzip
import json
import logging
from pathlib import Path
from typing import Any

from csoverview.map_data import OVERVIEW_IMAGE_SIZE
from csoverview.match import Match

logger = logging.getLogger(__name__)

EXPORT_FORMAT = "csoverview_json"
EXPORT_VERSION = "1.0"


class MatchExporter:
    """
    Exports a Match to JSON.
    """

    @staticmethod
    def to_dict(match: Match, precision: int = 1) -> dict[str, Any]:
        """Convert a match to a JSON-ready dictionary."""
        return {
            "_metadata": {"format": EXPORT_FORMAT, "version": EXPORT_VERSION},
            "map": {
                "name": match.map_name,
                "pos_x": match.map_origin.x,
                "pos_y": match.map_origin.y,
                "scale": match.map_scale,
                "image_size": OVERVIEW_IMAGE_SIZE,
            },
            "frame_rate": match.frame_rate,
            "frame_rate_rounded": match.frame_rate_rounded,
            "tick_rate": match.tick_rate,
            "smoke_lifetime": match.smoke_effect_lifetime,
            "half_starts": list(match.half_starts),
            "round_starts": list(match.round_starts),
            "skipped_frames": list(match.skipped_frames),
            "frames": [state.to_dict(precision) for state in match.states],
        }

    @staticmethod
    def to_json(match: Match, pretty: bool = False, precision: int = 1) -> str:
        """Export match to JSON string."""
        return json.dumps(
            MatchExporter.to_dict(match, precision),
            indent=2 if pretty else None,
            ensure_ascii=False,
        )

    @staticmethod
    def to_file(match: Match, path: Path, pretty: bool = False, precision: int = 1) -> None:
        """Export match to JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(MatchExporter.to_dict(match, precision), f, indent=2 if pretty else None, ensure_ascii=False)
        logger.info(f"Exported {len(match.states)} frames to {path}")

    @staticmethod
    def to_compressed(match: Match, path: Path, precision: int = 1) -> None:
        """Export match to gzip-compressed JSON file."""
        with gzip.open(path, "wt", encoding="utf-8") as f:
            json.dump(MatchExporter.to_dict(match, precision), f, ensure_ascii=False)
        logger.info(f"Exported compressed match ({len(match.states)} frames) to {path}")


def export_match(match: Match, path: Path, pretty: bool = False, precision: int = 1) -> Path:
    """
    Write a match to ``path``, compressing when the name ends with ``.gz``.

    Raises:
        ValueError: if the extension is neither .json nor .json.gz
    """
    path = Path(path)
    suffixes = [s.lower() for s in path.suffixes]

    if suffixes[-1:] == [".gz"]:
        MatchExporter.to_compressed(match, path, precision)
    elif suffixes[-1:] == [".json"]:
        MatchExporter.to_file(match, path, pretty, precision)
    else:
        raise ValueError(f"Unsupported export format: {path.suffix or path.name} (use .json or .json.gz)")

    return path
