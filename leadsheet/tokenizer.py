"""Tokenizer: turns the lyric stream into word and hyphen tokens."""

from __future__ import annotations

import re

from leadsheet.config import LYRIC_METRICS, LyricMetrics
from leadsheet.lyric_models import HyphenToken, Token, WordToken

_WORD_RE = re.compile(r"\S+")


def tokenize(lyrics: str) -> tuple[Token, ...]:
    """
    Tokenize ALL lyrics as one continuous stream.

    Newlines count as ordinary whitespace. Hyphenated words are split into
    word/hyphen/word tokens; empty segments around dashes are dropped. Every
    ``char_index`` is an absolute offset into ``lyrics``.

    Args:
        lyrics: Raw lyric text, possibly multi-line.

    Returns:
        Ordered tuple of tokens (empty for blank input).
    """
    tokens: list[Token] = []

    for match in _WORD_RE.finditer(lyrics):
        word = match.group(0)
        word_start = match.start()

        if "-" not in word:
            tokens.append(WordToken(text=word, char_index=word_start))
            continue

        local = 0
        for dash in (m.start() for m in re.finditer("-", word)):
            if dash > local:
                tokens.append(WordToken(text=word[local:dash], char_index=word_start + local))
            tokens.append(HyphenToken(char_index=word_start + dash))
            local = dash + 1

        if local < len(word):
            tokens.append(WordToken(text=word[local:], char_index=word_start + local))

    return tuple(tokens)


def token_width(token: Token, metrics: LyricMetrics = LYRIC_METRICS) -> float:
    """Estimated rendered width of a token in pixels."""
    if isinstance(token, HyphenToken):
        return metrics.hyphen_px
    return len(token.text) * metrics.char_px + metrics.pad_px


def word_index_by_char(tokens: tuple[Token, ...] | list[Token]) -> dict[int, int]:
    """Map each word token's ``char_index`` to its position in ``tokens``."""
    return {
        token.char_index: idx
        for idx, token in enumerate(tokens)
        if isinstance(token, WordToken)
    }
