"""Console presentation of loudness levels."""

from .level_display import LevelDisplay, render_meter, render_summary

__all__ = [
    "LevelDisplay",
    "render_meter",
    "render_summary",
]
