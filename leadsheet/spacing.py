"""SpacingPolicy: Strategy pattern for placing unanchored runs of lyric tokens."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from leadsheet.systems import SystemGeometry


@dataclass(frozen=True)
class Run:
    """
    A maximal stretch of unanchored tokens and the fences around it.

    Attributes:
        widths:        Output-space widths of the run's tokens, in order.
        start:         Position of the anchored token before the run, or the
                       system's left edge (0) when the run opens the system.
        end:           Position of the anchored token after the run, or the
                       system's extent when the run closes the system.
        start_width:   Width of the anchored token at ``start``; ``None`` when
                       the run opens the system.
        closes_system: True when ``end`` is the system's far edge.
    """

    widths: tuple[float, ...]
    start: float
    end: float
    start_width: float | None = None
    closes_system: bool = False

    @property
    def opens_system(self) -> bool:
        return self.start_width is None


# ── Abstract base ────────────────────────────────────────────────────────────

class SpacingPolicy(ABC):
    """
    Abstract Strategy for distributing the tokens of one unanchored run.

    The position solver handles anchor resolution, overlap correction and
    hyphen centering; concrete policies only decide where the free tokens
    between two fences go.
    """

    @abstractmethod
    def place(self, run: Run, gap: float) -> list[float]:
        """
        Return one position per token of ``run``.

        Args:
            run: The run and its fences.
            gap: The geometry's nominal inter-token gap.
        """

    @abstractmethod
    def overlap_gap(self, geometry: SystemGeometry) -> float:
        """Minimum gap enforced between neighbours by the overlap sweep."""


# ── Concrete strategies ──────────────────────────────────────────────────────

class EvenSpreadPolicy(SpacingPolicy):
    """
    Pixel-space policy: spread tokens evenly by index rank.

    Spacing is time-even rather than text-packed, so a short word and a long
    word between the same two anchors get the same share of the span.

    Fences
    ------
    * between two anchors: interpolate strictly between the anchor positions;
    * before the first anchor: from the left edge up to the anchor;
    * after the last anchor: from the anchor up to ``extent - width(last)``,
      so the final token ends on the far edge;
    * no anchors at all: from 0 up to ``extent - width(last)``.
    """

    def place(self, run: Run, gap: float) -> list[float]:
        count = len(run.widths)
        if count == 0:
            return []

        if run.opens_system and run.closes_system:
            positions = np.linspace(run.start, run.end - run.widths[-1], count)
        elif run.opens_system:
            positions = np.linspace(run.start, run.end, count + 1)[:-1]
        elif run.closes_system:
            positions = np.linspace(run.start, run.end - run.widths[-1], count + 1)[1:]
        else:
            positions = np.linspace(run.start, run.end, count + 2)[1:-1]

        return [float(x) for x in positions]

    def overlap_gap(self, geometry: SystemGeometry) -> float:
        return geometry.gap


class PackPolicy(SpacingPolicy):
    """
    Cell-space policy: pack tokens left-to-right between fence posts.

    The run starts at the left fence (just after the previous anchored token
    plus the base gap, or the system's left edge) and uses the base gap,
    compressed toward zero just enough to end before the right fence. A run
    that cannot fit even with no gap is packed tight from the left fence and
    allowed to overflow; a run with no room at all is stacked on the fence.
    """

    def place(self, run: Run, gap: float) -> list[float]:
        count = len(run.widths)
        if count == 0:
            return []

        left = run.start if run.opens_system else run.start + run.start_width + gap
        available = run.end - left
        if available <= 0:
            return [left] * count

        chosen_gap = gap
        if count > 1:
            max_gap_that_fits = (available - sum(run.widths)) / (count - 1)
            chosen_gap = max(0.0, min(gap, max_gap_that_fits))

        positions: list[float] = []
        cursor = left
        for width in run.widths:
            positions.append(cursor)
            cursor += width + chosen_gap
        return positions

    def overlap_gap(self, geometry: SystemGeometry) -> float:
        # Packing may already have compressed the gap to zero.
        return 0.0
