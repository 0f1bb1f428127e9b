"""End-to-end lyric layout: lyrics + anchors + grid -> per-system positions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Literal

from leadsheet.anchors import AnchorSet
from leadsheet.chunker import assign_to_systems
from leadsheet.config import LYRIC_METRICS, LyricMetrics
from leadsheet.layout import layout, overflow_index
from leadsheet.log import get_logger
from leadsheet.lyric_models import Anchor, SystemLayout, SystemWindow
from leadsheet.spacing import EvenSpreadPolicy, PackPolicy, SpacingPolicy
from leadsheet.systems import GridConfig, SystemGeometry, bar_count_for, build_system_windows
from leadsheet.tokenizer import tokenize

logger = get_logger(__name__)

LayoutSpace = Literal["pixel", "cell"]
SUPPORTED_SPACES: tuple[str, ...] = ("pixel", "cell")


@dataclass(frozen=True)
class LayoutRequest:
    """
    Everything one layout pass depends on.

    Attributes:
        lyrics:     Raw lyric text of the section.
        anchors:    Anchor pins, in any order.
        config:     Bar/beat grid and bar pixel geometry.
        total_bars: Bars in the section; defaults to the bars needed to reach
                    the latest anchored cell.
        space:      ``"pixel"`` for editor positions (even spread) or
                    ``"cell"`` for device-independent positions (packed).
        metrics:    Token width estimates.
    """

    lyrics: str
    anchors: Iterable[Anchor] = ()
    config: GridConfig = field(default_factory=GridConfig)
    total_bars: int | None = None
    space: LayoutSpace = "pixel"
    metrics: LyricMetrics = LYRIC_METRICS

    def __post_init__(self) -> None:
        # Snapshot so a one-shot iterable survives repeated layout passes.
        object.__setattr__(self, "anchors", tuple(self.anchors))


def layout_lead_sheet(request: LayoutRequest) -> tuple[SystemLayout, ...]:
    """
    Run tokenize -> assign to systems -> position solve for a whole section.

    Pure and deterministic: identical requests give identical layouts.

    Raises:
        ValueError: If ``request.space`` is not a supported layout space.
    """
    if request.space not in SUPPORTED_SPACES:
        supported = ", ".join(SUPPORTED_SPACES)
        raise ValueError(f"Unsupported layout space '{request.space}'. Use one of: {supported}.")

    config = request.config
    anchors = AnchorSet.from_iterable(request.anchors)
    tokens = tokenize(request.lyrics)

    total_bars = request.total_bars
    if total_bars is None:
        total_bars = bar_count_for(anchors.last_cell(), config.bar_cells)
    windows = build_system_windows(total_bars, config)

    chunks = assign_to_systems(
        tokens, anchors, windows, config.system_width_px, metrics=request.metrics
    )
    policy = _policy_for(request.space)

    layouts: list[SystemLayout] = []
    for index, (window, chunk) in enumerate(zip(windows, chunks)):
        geometry = _geometry_for(window, request)
        laid_out = layout(chunk, anchors.in_window(window), geometry, policy)
        overflowing = overflow_index(laid_out, geometry) is not None
        if overflowing:
            logger.info("System %d overflows its %.1f-unit width", index, geometry.extent)
        layouts.append(
            SystemLayout(index=index, window=window, tokens=laid_out, overflowing=overflowing)
        )

    logger.debug(
        "Laid out %d token(s) across %d system(s) in %s space",
        len(tokens),
        len(layouts),
        request.space,
    )
    return tuple(layouts)


def _policy_for(space: str) -> SpacingPolicy:
    if space == "cell":
        return PackPolicy()
    return EvenSpreadPolicy()


def _geometry_for(window: SystemWindow, request: LayoutRequest) -> SystemGeometry:
    config = request.config
    if request.space == "cell":
        return SystemGeometry.cells(window, config.px_per_cell, request.metrics)
    return SystemGeometry.pixels(window, config.window_width_px(window), request.metrics)
