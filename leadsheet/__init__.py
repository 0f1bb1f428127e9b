"""leadsheet: lyric-to-timeline alignment for lead-sheet editors."""

__version__ = "0.1.0"
