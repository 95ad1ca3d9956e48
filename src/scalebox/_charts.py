# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Chart payloads attached to code execution results.

Charts are an optional enrichment: a payload that cannot be decoded yields
None instead of an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SCALE = "linear"


class ChartType(StrEnum):
    LINE = "line"
    SCATTER = "scatter"
    BAR = "bar"
    PIE = "pie"
    BOX_AND_WHISKER = "box_and_whisker"
    SUPERCHART = "superchart"


def _get(payload: dict[str, Any], snake: str, default: Any = None) -> Any:
    """Read a snake_case key, falling back to its camelCase spelling."""
    if snake in payload:
        return payload[snake]
    head, *rest = snake.split("_")
    camel = head + "".join(part.capitalize() for part in rest)
    return payload.get(camel, default)


@dataclass(frozen=True)
class _AxesChart:
    title: str = ""
    elements: tuple[Any, ...] = ()
    x_label: str | None = None
    y_label: str | None = None
    x_unit: str | None = None
    y_unit: str | None = None

    @classmethod
    def _axes_fields(cls, payload: dict[str, Any]) -> dict[str, Any]:
        return {
            "title": _get(payload, "title") or "",
            "elements": tuple(_get(payload, "elements") or ()),
            "x_label": _get(payload, "x_label"),
            "y_label": _get(payload, "y_label"),
            "x_unit": _get(payload, "x_unit"),
            "y_unit": _get(payload, "y_unit"),
        }

    def _axes_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "elements": list(self.elements),
            "x_label": self.x_label,
            "y_label": self.y_label,
            "x_unit": self.x_unit,
            "y_unit": self.y_unit,
        }


@dataclass(frozen=True)
class _PointChart(_AxesChart):
    x_ticks: tuple[Any, ...] = ()
    x_tick_labels: tuple[str, ...] = ()
    x_scale: str = DEFAULT_SCALE
    y_ticks: tuple[Any, ...] = ()
    y_tick_labels: tuple[str, ...] = ()
    y_scale: str = DEFAULT_SCALE

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> _PointChart:
        return cls(
            **cls._axes_fields(payload),
            x_ticks=tuple(_get(payload, "x_ticks") or ()),
            x_tick_labels=tuple(_get(payload, "x_tick_labels") or ()),
            x_scale=_get(payload, "x_scale") or DEFAULT_SCALE,
            y_ticks=tuple(_get(payload, "y_ticks") or ()),
            y_tick_labels=tuple(_get(payload, "y_tick_labels") or ()),
            y_scale=_get(payload, "y_scale") or DEFAULT_SCALE,
        )

    def _point_dict(self) -> dict[str, Any]:
        return {
            **self._axes_dict(),
            "x_ticks": list(self.x_ticks),
            "x_tick_labels": list(self.x_tick_labels),
            "x_scale": self.x_scale,
            "y_ticks": list(self.y_ticks),
            "y_tick_labels": list(self.y_tick_labels),
            "y_scale": self.y_scale,
        }


@dataclass(frozen=True)
class LineChart(_PointChart):
    type = ChartType.LINE

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, **self._point_dict()}


@dataclass(frozen=True)
class ScatterChart(_PointChart):
    type = ChartType.SCATTER

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, **self._point_dict()}


@dataclass(frozen=True)
class BarChart(_AxesChart):
    type = ChartType.BAR

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> BarChart:
        return cls(**cls._axes_fields(payload))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, **self._axes_dict()}


@dataclass(frozen=True)
class BoxAndWhiskerChart(_AxesChart):
    type = ChartType.BOX_AND_WHISKER

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> BoxAndWhiskerChart:
        return cls(**cls._axes_fields(payload))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, **self._axes_dict()}


@dataclass(frozen=True)
class PieChart:
    title: str = ""
    elements: tuple[Any, ...] = ()

    type = ChartType.PIE

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> PieChart:
        return cls(
            title=_get(payload, "title") or "",
            elements=tuple(_get(payload, "elements") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "title": self.title, "elements": list(self.elements)}


@dataclass(frozen=True)
class SuperChart:
    """A chart composed of other charts. Nested charts that fail to decode are dropped."""

    title: str = ""
    elements: tuple[Chart, ...] = ()

    type = ChartType.SUPERCHART

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> SuperChart:
        elements = []
        for element in _get(payload, "elements") or ():
            chart = deserialize_chart(element)
            if chart is None:
                logger.debug("Dropping undecodable superchart element: %r", element)
                continue
            elements.append(chart)
        return cls(title=_get(payload, "title") or "", elements=tuple(elements))

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "title": self.title,
            "elements": [chart.to_dict() for chart in self.elements],
        }


Chart = LineChart | ScatterChart | BarChart | PieChart | BoxAndWhiskerChart | SuperChart

_CHART_CLASSES: dict[ChartType, Any] = {
    ChartType.LINE: LineChart,
    ChartType.SCATTER: ScatterChart,
    ChartType.BAR: BarChart,
    ChartType.PIE: PieChart,
    ChartType.BOX_AND_WHISKER: BoxAndWhiskerChart,
    ChartType.SUPERCHART: SuperChart,
}


def deserialize_chart(payload: Any) -> Chart | None:
    """Decode a chart payload, or return None if it is not a known chart.

    Example:
        ```python
        chart = deserialize_chart({"type": "bar", "title": "Sales", "elements": [...]})
        assert isinstance(chart, BarChart)
        ```
    """
    if not isinstance(payload, dict):
        return None
    try:
        chart_type = ChartType(payload.get("type"))
    except ValueError:
        return None
    try:
        return _CHART_CLASSES[chart_type].from_payload(payload)
    except (TypeError, ValueError) as e:
        logger.debug("Failed to decode %s chart: %s", chart_type.value, e)
        return None
