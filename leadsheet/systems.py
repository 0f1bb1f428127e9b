"""System partitioning and per-system output geometry."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from leadsheet.config import (
    CELL_WIDTH_SAFETY,
    DEFAULT_BAR_GAP_PX,
    DEFAULT_BAR_WIDTH_PX,
    DEFAULT_BARS_PER_SYSTEM,
    DEFAULT_BEATS_PER_BAR,
    DEFAULT_SUBDIVISION,
    LYRIC_METRICS,
    LyricMetrics,
)
from leadsheet.exceptions import ValidationError
from leadsheet.lyric_models import SystemWindow, Token
from leadsheet.tokenizer import token_width


@dataclass(frozen=True)
class GridConfig:
    """
    Bar/beat configuration of a section as supplied by the editor.

    Attributes:
        beats_per_bar:   Beats in one bar (time signature numerator).
        subdivision:     Cells per beat (1 = beats, 2 = eighths in 4/4, ...).
        bars_per_system: Bars drawn on one system row.
        bar_width_px:    On-screen width of a single bar.
        bar_gap_px:      Gap drawn between neighbouring bars.
    """

    beats_per_bar: int = DEFAULT_BEATS_PER_BAR
    subdivision: int = DEFAULT_SUBDIVISION
    bars_per_system: int = DEFAULT_BARS_PER_SYSTEM
    bar_width_px: float = DEFAULT_BAR_WIDTH_PX
    bar_gap_px: float = DEFAULT_BAR_GAP_PX

    def __post_init__(self) -> None:
        if self.bars_per_system <= 0:
            raise ValidationError(f"bars_per_system must be positive, got {self.bars_per_system}.")
        if self.bar_width_px < 0 or self.bar_gap_px < 0:
            raise ValidationError("Bar width and gap cannot be negative.")

    @property
    def bar_cells(self) -> int:
        return max(0, self.beats_per_bar * self.subdivision)

    @property
    def system_width_px(self) -> float:
        """Pixel width of a full system."""
        return self.bars_width_px(self.bars_per_system)

    @property
    def px_per_cell(self) -> float:
        if self.bar_cells <= 0:
            return 0.0
        return self.bar_width_px / self.bar_cells

    def bars_width_px(self, bars: int) -> float:
        if bars <= 0:
            return 0.0
        return bars * self.bar_width_px + (bars - 1) * self.bar_gap_px

    def window_width_px(self, window: SystemWindow) -> float:
        """Pixel width of the bars a window covers (the last system may be short)."""
        if self.bar_cells <= 0:
            return 0.0
        return self.bars_width_px(math.ceil(window.cell_count / self.bar_cells))


def bar_count_for(last_cell: int, bar_cells: int) -> int:
    """Number of bars needed to show ``last_cell``; always at least one."""
    if bar_cells <= 0:
        return 1
    return max(1, max(0, last_cell) // bar_cells + 1)


def build_system_windows(total_bars: int, config: GridConfig) -> tuple[SystemWindow, ...]:
    """
    Group bars into contiguous system windows.

    Each window covers ``bars_per_system`` bars except possibly the last one.
    A grid without cells produces no windows.
    """
    bar_cells = config.bar_cells
    if bar_cells <= 0 or total_bars <= 0:
        return ()

    windows: list[SystemWindow] = []
    for first_bar in range(0, total_bars, config.bars_per_system):
        bars = min(config.bars_per_system, total_bars - first_bar)
        start_cell = first_bar * bar_cells
        windows.append(SystemWindow(start_cell=start_cell, end_cell=start_cell + bars * bar_cells))
    return tuple(windows)


def cell_to_x(
    absolute_cell: float,
    system_start_cell: int,
    bar_cells: int,
    bar_width_px: float,
    gap_px: float,
) -> float:
    """Bar-aware pixel position of a cell, including the gaps between bars."""
    if bar_cells <= 0:
        return 0.0

    local = max(0.0, absolute_cell - system_start_cell)
    bar_index = math.floor(local / bar_cells)
    within_bar = local - bar_index * bar_cells
    return bar_index * (bar_width_px + gap_px) + (within_bar / bar_cells) * bar_width_px


@dataclass(frozen=True)
class SystemGeometry:
    """
    Output space of one system, in pixels or in cells.

    ``unit_scale`` converts estimated pixel widths into output units and
    ``width_margin`` inflates them (the cell space errs on the wide side).
    """

    window: SystemWindow
    extent: float
    unit_scale: float = 1.0
    width_margin: float = 1.0
    metrics: LyricMetrics = LYRIC_METRICS

    @classmethod
    def pixels(
        cls, window: SystemWindow, width_px: float, metrics: LyricMetrics = LYRIC_METRICS
    ) -> SystemGeometry:
        return cls(window=window, extent=max(0.0, width_px), metrics=metrics)

    @classmethod
    def cells(
        cls, window: SystemWindow, px_per_cell: float, metrics: LyricMetrics = LYRIC_METRICS
    ) -> SystemGeometry:
        scale = 1.0 / px_per_cell if px_per_cell > 0 else 0.0
        return cls(
            window=window,
            extent=float(window.cell_count),
            unit_scale=scale,
            width_margin=CELL_WIDTH_SAFETY,
            metrics=metrics,
        )

    @property
    def is_degenerate(self) -> bool:
        return self.extent <= 0 or self.window.cell_count <= 0

    @property
    def gap(self) -> float:
        return self.metrics.gap_px * self.width_margin * self.unit_scale

    def token_width(self, token: Token) -> float:
        return token_width(token, self.metrics) * self.width_margin * self.unit_scale

    def cell_to_position(self, cell: float) -> float:
        """Clamped linear map of an absolute cell onto ``[0, extent]``."""
        if self.is_degenerate:
            return 0.0
        return float(
            np.interp(cell, [self.window.start_cell, self.window.end_cell], [0.0, self.extent])
        )
