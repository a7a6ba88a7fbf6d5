"""
csoverview - CS2 Match Overview Timeline

Reconstructs a frame-by-frame 2D overview of a Counter-Strike demo: player
positions and inventories, grenades, infernos, the bomb, team scores, the
round timer, and short-lived effects (grenade bursts, shots, kill feed).

Usage:
    from csoverview import load_match

    match = load_match("match.dem", fallback_frame_rate=64)
    for state in match.states[::64]:
        print(state.ingame_tick, state.timer.phase, state.timer.time_remaining)
"""

__version__ = "0.1.0"
__author__ = "csoverview Contributors"


def __getattr__(name):
    """Lazy import for heavy dependencies."""
    if name == "Match":
        from csoverview.match import Match
        return Match
    elif name == "build_match":
        from csoverview.match import build_match
        return build_match
    elif name == "load_match":
        from csoverview.match import load_match
        return load_match
    elif name == "Demoparser2Source":
        from csoverview.core.parser import Demoparser2Source
        return Demoparser2Source
    elif name == "MatchExporter":
        from csoverview.visualization.export import MatchExporter
        return MatchExporter
    elif name == "CoordinateTranslator":
        from csoverview.visualization.radar import CoordinateTranslator
        return CoordinateTranslator
    raise AttributeError(f"module 'csoverview' has no attribute '{name}'")


__all__ = [
    # Version
    "__version__",
    # Construction
    "Match",
    "build_match",
    "load_match",
    "Demoparser2Source",
    # Presentation
    "MatchExporter",
    "CoordinateTranslator",
]
