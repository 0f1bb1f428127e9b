"""Configuration settings for leadsheet."""

import os
from dataclasses import dataclass

from leadsheet.exceptions import ConfigError


@dataclass(frozen=True)
class LyricMetrics:
    """
    Estimated pixel metrics for lyric chips.

    Attributes:
        char_px:   Width contributed by each character of a word.
        pad_px:    Fixed horizontal padding around a word chip.
        gap_px:    Gap between neighbouring tokens.
        hyphen_px: Width of a hyphen token.
    """

    char_px: float = 9.0
    pad_px: float = 20.0
    gap_px: float = 10.0
    hyphen_px: float = 14.0


# Lyric metrics (roughly match the rendered chip width; env overridable)
LYRIC_METRICS = LyricMetrics(
    char_px=float(os.getenv("LEADSHEET_CHAR_PX", "9")),
    pad_px=float(os.getenv("LEADSHEET_PAD_PX", "20")),
    gap_px=float(os.getenv("LEADSHEET_GAP_PX", "10")),
    hyphen_px=float(os.getenv("LEADSHEET_HYPHEN_PX", "14")),
)

# Chunking
MAX_TOKENS_PER_SYSTEM = 260  # runaway guard for the width fill
REFLOW_RETRIES = 10

# Cell-space layout errs on the wide side so packed chips never merge
CELL_WIDTH_SAFETY = 1.12

POSITION_EPSILON = 1e-9

# Grid defaults
DEFAULT_BEATS_PER_BAR = int(os.getenv("LEADSHEET_BEATS_PER_BAR", "4"))
DEFAULT_SUBDIVISION = int(os.getenv("LEADSHEET_SUBDIVISION", "2"))
DEFAULT_BARS_PER_SYSTEM = int(os.getenv("LEADSHEET_BARS_PER_SYSTEM", "3"))
DEFAULT_BAR_WIDTH_PX = float(os.getenv("LEADSHEET_BAR_WIDTH_PX", "520"))
DEFAULT_BAR_GAP_PX = float(os.getenv("LEADSHEET_BAR_GAP_PX", "16"))


def validate_config() -> None:
    """Validate configuration values."""
    metrics = LYRIC_METRICS
    if min(metrics.char_px, metrics.pad_px, metrics.hyphen_px) <= 0:
        raise ConfigError("Lyric metrics must be positive")

    if metrics.gap_px < 0:
        raise ConfigError("Lyric gap cannot be negative")

    if DEFAULT_BEATS_PER_BAR <= 0 or DEFAULT_SUBDIVISION <= 0:
        raise ConfigError("Invalid default time grid")

    if DEFAULT_BARS_PER_SYSTEM <= 0:
        raise ConfigError("Invalid default bars per system")

    if DEFAULT_BAR_WIDTH_PX <= 0 or DEFAULT_BAR_GAP_PX < 0:
        raise ConfigError("Invalid default bar geometry")
