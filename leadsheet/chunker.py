"""Chunker: assigns contiguous token ranges to systems.

Chunks are tracked as a boundary list ``[b0, b1, ..., bS]`` over the global
token tuple; system ``s`` owns ``tokens[b[s]:b[s + 1]]``. Every pass maps a
boundary list to a new, still non-decreasing one, so concatenating the chunks
always reproduces the token sequence exactly once.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Iterable, Sequence

from leadsheet.anchors import AnchorSet
from leadsheet.config import LYRIC_METRICS, MAX_TOKENS_PER_SYSTEM, REFLOW_RETRIES, LyricMetrics
from leadsheet.layout import layout, overflow_index
from leadsheet.log import get_logger
from leadsheet.lyric_models import Anchor, SystemWindow, Token
from leadsheet.systems import SystemGeometry
from leadsheet.tokenizer import token_width, word_index_by_char

logger = get_logger(__name__)


def assign_to_systems(
    tokens: Sequence[Token],
    anchors: Iterable[Anchor],
    windows: Sequence[SystemWindow],
    system_width: float,
    *,
    metrics: LyricMetrics = LYRIC_METRICS,
) -> list[tuple[Token, ...]]:
    """
    Split ``tokens`` into one chunk per system window.

    Passes, in order:

    1. fill each system by estimated width, extending it to reach any token
       anchored inside its window;
    2. move anchored tokens that landed in an earlier system forward into
       the system owning their cell;
    3. push trailing overflow of each system into the next one, never past an
       anchored token the system must keep.

    Args:
        tokens:       Full token sequence of the lyrics.
        anchors:      Anchor pins (any order).
        windows:      Contiguous system windows, in order.
        system_width: Pixel width available to a system's lyric row.
        metrics:      Width estimates for tokens.

    Returns:
        One tuple of tokens per window. Empty when there are no windows.
    """
    tokens = tuple(tokens)
    windows = tuple(windows)
    if not windows:
        return []

    anchors_by_window = AnchorSet.from_iterable(anchors).by_window(windows)
    required = required_token_index_by_system(tokens, anchors_by_window)

    bounds = fill_by_width(tokens, required, system_width, metrics=metrics)
    bounds = enforce_anchor_ownership(bounds, tokens, anchors_by_window)
    bounds = reflow_overflow(
        bounds, tokens, windows, anchors_by_window, system_width, metrics=metrics
    )
    return chunks_from_boundaries(tokens, bounds)


def chunks_from_boundaries(tokens: Sequence[Token], bounds: Sequence[int]) -> list[tuple[Token, ...]]:
    tokens = tuple(tokens)
    return [tokens[start:end] for start, end in zip(bounds, bounds[1:])]


def required_token_index_by_system(
    tokens: Sequence[Token], anchors_by_window: Sequence[Sequence[Anchor]]
) -> list[int]:
    """Highest global token index anchored inside each window (-1 if none)."""
    index_by_char = word_index_by_char(tokens)
    required: list[int] = []
    for anchors in anchors_by_window:
        indices = [index_by_char[a.char_index] for a in anchors if a.char_index in index_by_char]
        required.append(max(indices, default=-1))
    return required


def fill_by_width(
    tokens: Sequence[Token],
    required: Sequence[int],
    system_width: float,
    *,
    metrics: LyricMetrics = LYRIC_METRICS,
) -> list[int]:
    """
    Forward width fill with anchor-driven extension.

    Each system greedily takes tokens while their widths plus gaps fit in
    ``system_width`` (always at least one while tokens remain), then grows
    its end to cover ``required[s]`` if that index lies beyond the fill. The
    last system takes whatever is left.
    """
    count = len(tokens)
    bounds = [0]
    ptr = 0

    for s, required_index in enumerate(required):
        end = ptr
        if ptr < count:
            end = _fill_end(tokens, ptr, system_width, metrics)
            if required_index >= ptr:
                end = max(end, min(required_index + 1, count))
        if s == len(required) - 1:
            end = count
        bounds.append(end)
        ptr = end

    return bounds


def enforce_anchor_ownership(
    bounds: Sequence[int],
    tokens: Sequence[Token],
    anchors_by_window: Sequence[Sequence[Anchor]],
) -> list[int]:
    """
    Move anchored tokens forward into the system that owns their cell.

    When an anchored token sits in an earlier system ``c`` than its owner
    ``s``, the token and everything after it up to the start of ``s`` become
    the front of ``s``. Tokens already later than their owner stay put. A
    move that would take a token away from an earlier system's own anchor is
    skipped (crossed anchors).
    """
    bounds = list(bounds)
    index_by_char = word_index_by_char(tokens)
    owned = [
        [index_by_char[a.char_index] for a in anchors if a.char_index in index_by_char]
        for anchors in anchors_by_window
    ]

    for s, indices in enumerate(owned):
        for token_index in indices:
            current = _system_of(bounds, token_index)
            if current >= s:
                continue

            if _holds_earlier_anchor(bounds, owned, s, token_index):
                logger.debug(
                    "Skipping ownership move of token %d into system %d: crossed anchors",
                    token_index,
                    s,
                )
                continue

            logger.debug(
                "Moving tokens %d..%d from system %d into system %d",
                token_index,
                bounds[s] - 1,
                current,
                s,
            )
            for m in range(current + 1, s + 1):
                bounds[m] = token_index

    return bounds


def reflow_overflow(
    bounds: Sequence[int],
    tokens: Sequence[Token],
    windows: Sequence[SystemWindow],
    anchors_by_window: Sequence[Sequence[Anchor]],
    system_width: float,
    *,
    metrics: LyricMetrics = LYRIC_METRICS,
) -> list[int]:
    """
    Push visually overflowing tails into the next system.

    Each system but the last is laid out in pixel space; while a token's
    right edge passes ``system_width``, the first such token that comes after
    every token the system's anchors require moves, with the rest of the
    chunk, to the front of the next system. Overflowing tokens the system
    must keep are skipped over, so a tail behind an edge-anchored word still
    moves on.

    A system keeps at least its first token, even an unanchored one, and
    otherwise stays overflowing. Pushing it would only empty the system and
    hand the same overflow to the next one.
    """
    bounds = list(bounds)
    tokens = tuple(tokens)
    index_by_char = word_index_by_char(tokens)

    for s in range(len(windows) - 1):
        geometry = SystemGeometry.pixels(windows[s], system_width, metrics)
        start = bounds[s]
        required_local = max(
            (
                index_by_char[a.char_index] - start
                for a in anchors_by_window[s]
                if start <= index_by_char.get(a.char_index, -1) < bounds[s + 1]
            ),
            default=-1,
        )

        for _ in range(REFLOW_RETRIES):
            end = bounds[s + 1]
            if end == start:
                break

            laid_out = layout(tokens[start:end], anchors_by_window[s], geometry)
            overflow = overflow_index(laid_out, geometry, start=max(required_local, 0) + 1)
            if overflow is None:
                break

            logger.debug(
                "System %d overflows at token %d; pushing %d token(s) to system %d",
                s,
                start + overflow,
                end - start - overflow,
                s + 1,
            )
            bounds[s + 1] = start + overflow

    return bounds


# ------------------------------------------------------------------
# Private helpers
# ------------------------------------------------------------------

def _fill_end(tokens: Sequence[Token], ptr: int, system_width: float, metrics: LyricMetrics) -> int:
    used = 0.0
    end = ptr
    while end < len(tokens):
        next_used = used + token_width(tokens[end], metrics) + (0.0 if end == ptr else metrics.gap_px)
        if next_used > system_width and end > ptr:
            break
        used = next_used
        end += 1
        if end - ptr >= MAX_TOKENS_PER_SYSTEM:
            break
    return end


def _system_of(bounds: Sequence[int], token_index: int) -> int:
    """System currently holding ``token_index`` (empty systems are skipped)."""
    return bisect_right(bounds, token_index) - 1


def _holds_earlier_anchor(
    bounds: Sequence[int], owned: Sequence[Sequence[int]], s: int, token_index: int
) -> bool:
    for m in range(s):
        for required_index in owned[m]:
            if required_index >= token_index and bounds[m] <= required_index < bounds[m + 1]:
                return True
    return False
