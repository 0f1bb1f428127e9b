"""Position solver: places one system's tokens around its anchors."""

from __future__ import annotations

from typing import Iterable, Sequence

from leadsheet.config import POSITION_EPSILON
from leadsheet.lyric_models import Anchor, HyphenToken, LaidOutToken, Token, WordToken
from leadsheet.spacing import EvenSpreadPolicy, Run, SpacingPolicy
from leadsheet.systems import SystemGeometry
from leadsheet.tokenizer import word_index_by_char


def resolve_anchor_points(
    tokens: Sequence[Token], anchors: Iterable[Anchor], geometry: SystemGeometry
) -> list[tuple[int, float]]:
    """
    Map anchors onto local token indices and output-space positions.

    Anchors whose ``char_index`` matches no word token of ``tokens`` are
    skipped; they stay stored and apply again once such a token exists.

    Returns:
        ``(local_index, position)`` pairs ordered by local index.
    """
    index_by_char = word_index_by_char(tokens)
    points: dict[int, float] = {}
    for anchor in anchors:
        local_index = index_by_char.get(anchor.char_index)
        if local_index is None:
            continue
        points[local_index] = geometry.cell_to_position(anchor.cell)
    return sorted(points.items())


def layout(
    tokens: Sequence[Token],
    anchors: Iterable[Anchor],
    geometry: SystemGeometry,
    policy: SpacingPolicy | None = None,
) -> tuple[LaidOutToken, ...]:
    """
    Compute the position of every token of one system.

    Anchored tokens are pinned to the clamped position of their cell and are
    never moved afterwards. Unanchored runs are placed by ``policy``
    (even spread by default), then pushed apart where they overlap, hyphens
    are centered between their words, and an anchor-free line is shifted back
    inside the system if needed.

    Args:
        tokens:   The system's chunk, in lyric order.
        anchors:  Anchors to honour (normally those inside the window).
        geometry: Output space of the system (pixels or cells).
        policy:   Spacing policy for unanchored runs.

    Returns:
        One ``LaidOutToken`` per input token, same order.
    """
    tokens = tuple(tokens)
    if not tokens:
        return ()
    if geometry.is_degenerate:
        return tuple(LaidOutToken(token=t, position=0.0) for t in tokens)

    policy = policy or EvenSpreadPolicy()
    widths = [geometry.token_width(t) for t in tokens]
    gap = geometry.gap

    positions = _linear_flow(widths, gap)
    points = resolve_anchor_points(tokens, anchors, geometry)

    for first, run in _unanchored_runs(widths, points, geometry.extent):
        for offset, position in enumerate(policy.place(run, gap)):
            positions[first + offset] = position

    anchored = {idx for idx, _ in points}
    for idx, position in points:
        positions[idx] = position

    _resolve_overlaps(positions, widths, anchored, policy.overlap_gap(geometry))
    _center_hyphens(positions, widths, tokens)

    if not anchored:
        _shift_into_view(positions, widths, geometry.extent)

    return tuple(LaidOutToken(token=t, position=p) for t, p in zip(tokens, positions))


def overflow_index(
    laid_out: Sequence[LaidOutToken], geometry: SystemGeometry, start: int = 0
) -> int | None:
    """First index at or after ``start`` whose right edge passes the system's far edge."""
    for idx in range(max(0, start), len(laid_out)):
        item = laid_out[idx]
        if item.position + geometry.token_width(item.token) > geometry.extent + POSITION_EPSILON:
            return idx
    return None


# ------------------------------------------------------------------
# Private helpers
# ------------------------------------------------------------------

def _linear_flow(widths: list[float], gap: float) -> list[float]:
    positions: list[float] = []
    cursor = 0.0
    for width in widths:
        positions.append(cursor)
        cursor += width + gap
    return positions


def _unanchored_runs(
    widths: list[float], points: list[tuple[int, float]], extent: float
) -> list[tuple[int, Run]]:
    """Split the token range at anchored indices into ``(first_index, Run)`` pairs."""
    count = len(widths)
    if not points:
        return [(0, Run(widths=tuple(widths), start=0.0, end=extent, closes_system=True))]

    runs: list[tuple[int, Run]] = []
    first_idx, first_pos = points[0]
    if first_idx > 0:
        runs.append((0, Run(widths=tuple(widths[:first_idx]), start=0.0, end=first_pos)))

    for (a_idx, a_pos), (b_idx, b_pos) in zip(points, points[1:]):
        if b_idx - a_idx > 1:
            run = Run(
                widths=tuple(widths[a_idx + 1:b_idx]),
                start=a_pos,
                end=b_pos,
                start_width=widths[a_idx],
            )
            runs.append((a_idx + 1, run))

    last_idx, last_pos = points[-1]
    if last_idx < count - 1:
        run = Run(
            widths=tuple(widths[last_idx + 1:]),
            start=last_pos,
            end=extent,
            start_width=widths[last_idx],
            closes_system=True,
        )
        runs.append((last_idx + 1, run))

    return runs


def _resolve_overlaps(
    positions: list[float], widths: list[float], anchored: set[int], gap: float
) -> None:
    """
    Forward sweep pushing free tokens clear of their predecessor.

    When an anchored token is overlapped, the free tokens before it are
    pulled left instead, stopping at the first anchored token.
    """
    for i in range(1, len(positions)):
        min_pos = positions[i - 1] + widths[i - 1] + gap

        if i not in anchored:
            if positions[i] < min_pos:
                positions[i] = min_pos
            continue

        if min_pos <= positions[i] + POSITION_EPSILON:
            continue

        j = i - 1
        while j >= 0 and j not in anchored:
            allowed = positions[j + 1] - gap - widths[j]
            if positions[j] <= allowed + POSITION_EPSILON:
                break
            positions[j] = allowed
            j -= 1


def _center_hyphens(positions: list[float], widths: list[float], tokens: tuple[Token, ...]) -> None:
    for i in range(1, len(tokens) - 1):
        if not isinstance(tokens[i], HyphenToken):
            continue
        if not (isinstance(tokens[i - 1], WordToken) and isinstance(tokens[i + 1], WordToken)):
            continue
        left_edge = positions[i - 1] + widths[i - 1]
        midpoint = (left_edge + positions[i + 1]) / 2
        positions[i] = midpoint - widths[i] / 2


def _shift_into_view(positions: list[float], widths: list[float], extent: float) -> None:
    """Uniformly shift the line into ``[0, extent]``; the left edge wins."""
    min_left = min(positions)
    max_right = max(p + w for p, w in zip(positions, widths))

    shift = -min_left if min_left < 0 else 0.0
    if max_right + shift > extent:
        shift = max(0.0, shift - (max_right + shift - extent))

    if shift:
        for i in range(len(positions)):
            positions[i] += shift
