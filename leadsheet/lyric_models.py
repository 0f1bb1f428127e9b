"""Data models shared by the tokenizer, chunker and position solver."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union


@dataclass(frozen=True)
class WordToken:
    """A whitespace- or dash-delimited lyric syllable."""

    text: str
    char_index: int
    kind: Literal["word"] = field(default="word", init=False)


@dataclass(frozen=True)
class HyphenToken:
    """A dash inside a hyphenated word."""

    char_index: int
    kind: Literal["hyphen"] = field(default="hyphen", init=False)

    @property
    def text(self) -> str:
        return "-"


Token = Union[WordToken, HyphenToken]


@dataclass(frozen=True)
class Anchor:
    """A user pin binding a lyric character position to an absolute cell."""

    id: str
    char_index: int
    cell: int


@dataclass(frozen=True)
class SystemWindow:
    """Half-open cell range ``[start_cell, end_cell)`` covered by one system."""

    start_cell: int
    end_cell: int

    @property
    def cell_count(self) -> int:
        return max(0, self.end_cell - self.start_cell)

    def contains(self, cell: int) -> bool:
        return self.start_cell <= cell < self.end_cell


@dataclass(frozen=True)
class LaidOutToken:
    """A token and its resolved position inside one system."""

    token: Token
    position: float


@dataclass(frozen=True)
class SystemLayout:
    """Final token placement for a single system."""

    index: int
    window: SystemWindow
    tokens: tuple[LaidOutToken, ...]
    overflowing: bool = False
