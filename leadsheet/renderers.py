"""Renderer implementations for laid-out lead sheets."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Sequence

from leadsheet.lyric_models import LaidOutToken, SystemLayout
from leadsheet.systems import GridConfig, cell_to_x


class LayoutRenderer(ABC):
    """Abstract layout renderer."""

    @property
    @abstractmethod
    def default_extension(self) -> str:
        """Default filename extension for this renderer."""

    @abstractmethod
    def render(
        self,
        *,
        title: str,
        layouts: Sequence[SystemLayout],
        config: GridConfig,
        space: str = "pixel",
    ) -> str:
        """Render output into a file content string."""


class TextPreviewRenderer(LayoutRenderer):
    """Render systems as a monospace preview: a bar ruler over a lyric row."""

    _PX_PER_COLUMN: float = 10.0

    @property
    def default_extension(self) -> str:
        return ".txt"

    def render(
        self,
        *,
        title: str,
        layouts: Sequence[SystemLayout],
        config: GridConfig,
        space: str = "pixel",
    ) -> str:
        lines: list[str] = []
        if title:
            lines.extend([title, "=" * len(title), ""])

        for system in layouts:
            window = system.window
            flag = "  (overflow)" if system.overflowing else ""
            lines.append(f"System {system.index + 1}  [cells {window.start_cell}-{window.end_cell}){flag}")
            lines.append(self._ruler(system, config))
            lines.append(self._lyric_row(system, config, space))
            lines.append("")

        return "\n".join(lines).rstrip() + "\n"

    def _column(self, x: float) -> int:
        return max(0, int(round(x / self._PX_PER_COLUMN)))

    def _ruler(self, system: SystemLayout, config: GridConfig) -> str:
        bar_cells = config.bar_cells
        if bar_cells <= 0:
            return "|"

        start = system.window.start_cell
        columns = [
            self._column(cell_to_x(cell, start, bar_cells, config.bar_width_px, config.bar_gap_px))
            for cell in range(start, system.window.end_cell, bar_cells)
        ]
        columns.append(self._column(config.window_width_px(system.window)))

        row = [" "] * (columns[-1] + 1)
        for col in columns:
            row[col] = "|"
        return "".join(row)

    def _lyric_row(self, system: SystemLayout, config: GridConfig, space: str) -> str:
        row: list[str] = []
        for item in system.tokens:
            col = self._column(self._token_x(item, system, config, space))
            # Keep one blank column between tokens the preview cannot separate.
            if row:
                col = max(col, len(row) + 1)
            row.extend(" " * (col - len(row)))
            row.extend(item.token.text)
        return "".join(row)

    def _token_x(
        self, item: LaidOutToken, system: SystemLayout, config: GridConfig, space: str
    ) -> float:
        if space != "cell":
            return item.position
        start = system.window.start_cell
        return cell_to_x(
            start + item.position, start, config.bar_cells, config.bar_width_px, config.bar_gap_px
        )


class JsonLayoutRenderer(LayoutRenderer):
    """Render systems as a compact JSON position dump."""

    _PRECISION: int = 3

    @property
    def default_extension(self) -> str:
        return ".json"

    def render(
        self,
        *,
        title: str,
        layouts: Sequence[SystemLayout],
        config: GridConfig,
        space: str = "pixel",
    ) -> str:
        payload: dict[str, Any] = {
            "title": title,
            "space": space,
            "bar_cells": config.bar_cells,
            "systems": [self._system_payload(system) for system in layouts],
        }
        return json.dumps(payload, separators=(",", ":"))

    def _system_payload(self, system: SystemLayout) -> dict[str, Any]:
        return {
            "index": system.index,
            "start_cell": system.window.start_cell,
            "end_cell": system.window.end_cell,
            "overflowing": system.overflowing,
            "tokens": [
                {
                    "kind": item.token.kind,
                    "text": item.token.text,
                    "char_index": item.token.char_index,
                    "position": round(item.position, self._PRECISION),
                }
                for item in system.tokens
            ],
        }
