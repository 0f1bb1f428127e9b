"""Anchor index: normalized, immutable set of lyric-to-cell pins."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Iterable, Iterator

from leadsheet.exceptions import ValidationError
from leadsheet.lyric_models import Anchor, SystemWindow


@dataclass(frozen=True)
class AnchorSet:
    """
    Insertion-ordered anchors with at most one pin per character index.

    Every editing operation returns a new ``AnchorSet``; consumers that care
    about timing read ``by_cell()`` or ``in_window()``.
    """

    anchors: tuple[Anchor, ...] = ()

    @classmethod
    def from_iterable(
        cls, anchors: Iterable[Anchor], lyrics_length: int | None = None
    ) -> AnchorSet:
        """
        Normalize raw anchors.

        Anchors with a negative cell or character index, or one past
        ``lyrics_length`` when given, are dropped. When several anchors share
        a character index the last one wins.
        """
        kept: dict[int, Anchor] = {}
        for anchor in anchors:
            if anchor.cell < 0 or anchor.char_index < 0:
                continue
            if lyrics_length is not None and anchor.char_index > lyrics_length:
                continue
            kept.pop(anchor.char_index, None)
            kept[anchor.char_index] = anchor
        return cls(tuple(kept.values()))

    def __iter__(self) -> Iterator[Anchor]:
        return iter(self.anchors)

    def __len__(self) -> int:
        return len(self.anchors)

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def add(
        self,
        char_index: int,
        cell: int,
        *,
        lyrics_length: int,
        anchor_id: str | None = None,
    ) -> AnchorSet:
        """
        Pin ``char_index`` to ``cell``, replacing any anchor already there.

        Raises:
            ValidationError: If ``cell`` is negative.
        """
        if cell < 0:
            raise ValidationError(f"Anchor cell must be >= 0, got {cell}.")

        clamped = max(0, min(char_index, lyrics_length))
        anchor = Anchor(id=anchor_id or str(uuid.uuid4()), char_index=clamped, cell=cell)
        return AnchorSet.from_iterable((*self.anchors, anchor))

    def remove(self, anchor_id: str) -> AnchorSet:
        return AnchorSet(tuple(a for a in self.anchors if a.id != anchor_id))

    def remove_at(self, char_index: int) -> AnchorSet:
        return AnchorSet(tuple(a for a in self.anchors if a.char_index != char_index))

    def undo_last(self) -> AnchorSet:
        """Drop the most recently added anchor."""
        return AnchorSet(self.anchors[:-1])

    def clamp_to_lyrics(self, new_length: int) -> AnchorSet:
        """
        Follow a lyrics edit: clamp every character index to ``new_length``.

        Anchors are never remapped to a different character beyond the clamp;
        when clamping stacks several anchors on one index the most recently
        added one survives.
        """
        clamped = (replace(a, char_index=min(a.char_index, new_length)) for a in self.anchors)
        return AnchorSet.from_iterable(clamped, lyrics_length=new_length)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def by_cell(self) -> tuple[Anchor, ...]:
        return tuple(sorted(self.anchors, key=lambda a: (a.cell, a.char_index)))

    def in_window(self, window: SystemWindow) -> tuple[Anchor, ...]:
        """Anchors whose cell falls inside ``window``, sorted by cell."""
        return tuple(a for a in self.by_cell() if window.contains(a.cell))

    def by_window(self, windows: Iterable[SystemWindow]) -> list[tuple[Anchor, ...]]:
        return [self.in_window(window) for window in windows]

    def anchored_char_indices(self) -> set[int]:
        return {a.char_index for a in self.anchors}

    def last_cell(self) -> int:
        return max((a.cell for a in self.anchors), default=0)
