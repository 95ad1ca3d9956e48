# SPDX-FileCopyrightText: 2025 Scalebox Authors
# SPDX-License-Identifier: Apache-2.0
# SPDX-PackageName: scalebox-client

"""Unit tests for scalebox._charts module."""

from __future__ import annotations

import pytest

from scalebox._charts import (
    BarChart,
    BoxAndWhiskerChart,
    Chart,
    ChartType,
    LineChart,
    PieChart,
    ScatterChart,
    SuperChart,
    deserialize_chart,
)


class TestDeserializeChart:
    """Tests for deserialize_chart."""

    @pytest.mark.parametrize(
        ("chart_type", "cls"),
        [
            ("line", LineChart),
            ("scatter", ScatterChart),
            ("bar", BarChart),
            ("pie", PieChart),
            ("box_and_whisker", BoxAndWhiskerChart),
            ("superchart", SuperChart),
        ],
    )
    def test_known_types(self, chart_type: str, cls: type) -> None:
        """Test each known type decodes to its class."""
        chart = deserialize_chart({"type": chart_type, "title": "T"})
        assert isinstance(chart, cls)
        assert chart.title == "T"
        assert chart.type == ChartType(chart_type)

    def test_point_chart_fields(self) -> None:
        """Test axes, ticks and scales on a line chart, with camelCase keys."""
        chart = deserialize_chart(
            {
                "type": "line",
                "title": "Growth",
                "xLabel": "year",
                "y_label": "users",
                "xTicks": [2020, 2021],
                "xTickLabels": ["2020", "2021"],
                "yScale": "log",
                "elements": [{"label": "a", "points": [[0, 1]]}],
            }
        )

        assert isinstance(chart, LineChart)
        assert chart.x_label == "year"
        assert chart.y_label == "users"
        assert chart.x_ticks == (2020, 2021)
        assert chart.x_tick_labels == ("2020", "2021")
        assert chart.x_scale == "linear"
        assert chart.y_scale == "log"
        assert chart.to_dict()["elements"] == [{"label": "a", "points": [[0, 1]]}]

    def test_bar_has_no_ticks(self) -> None:
        """Test bar charts carry axes only."""
        chart = deserialize_chart({"type": "bar", "x_unit": "s", "x_ticks": [1]})
        assert isinstance(chart, BarChart)
        assert chart.x_unit == "s"
        assert "x_ticks" not in chart.to_dict()

    def test_pie_elements_only(self) -> None:
        """Test pie charts carry title and elements only."""
        chart = deserialize_chart({"type": "pie", "elements": [{"label": "a", "angle": 90}]})
        assert chart.to_dict() == {
            "type": "pie",
            "title": "",
            "elements": [{"label": "a", "angle": 90}],
        }

    def test_superchart_drops_bad_elements(self) -> None:
        """Test undecodable nested charts are dropped."""
        chart = deserialize_chart(
            {
                "type": "superchart",
                "title": "combo",
                "elements": [
                    {"type": "bar", "title": "ok"},
                    {"type": "bar", "elements": 5},
                    {"type": "radar"},
                    "not a chart",
                    {"type": "pie", "title": "ok too"},
                ],
            }
        )

        assert isinstance(chart, SuperChart)
        assert [type(c) for c in chart.elements] == [BarChart, PieChart]
        assert [c["title"] for c in chart.to_dict()["elements"]] == ["ok", "ok too"]

    @pytest.mark.parametrize("payload", [{"type": "radar"}, {}, None, "line", []])
    def test_unknown_returns_none(self, payload: object) -> None:
        """Test unknown or non-object payloads decode to None."""
        assert deserialize_chart(payload) is None

    @pytest.mark.parametrize(
        "chart",
        [
            ScatterChart(title="s", x_ticks=(1, 2), y_tick_labels=("a",)),
            LineChart(
                title="Growth",
                elements=({"label": "users", "points": [[2020, 1], [2021, 4]]},),
                x_label="year",
                y_unit="k",
                x_ticks=(2020, 2021),
                x_tick_labels=("2020", "2021"),
                y_scale="log",
            ),
            BarChart(
                title="Sales",
                elements=({"label": "Q1", "value": 10, "group": "eu"},),
                x_label="quarter",
                y_label="units",
            ),
            PieChart(title="Share", elements=({"label": "a", "angle": 90, "radius": 1},)),
            BoxAndWhiskerChart(
                title="Latency",
                elements=({"label": "p", "min": 1, "first_quartile": 2, "median": 3},),
                y_unit="ms",
            ),
            SuperChart(
                title="combo",
                elements=(
                    BarChart(title="inner bar", elements=({"label": "x", "value": 1},)),
                    PieChart(title="inner pie"),
                    LineChart(title="inner line", x_ticks=(0, 1)),
                ),
            ),
        ],
        ids=["scatter", "line", "bar", "pie", "box_and_whisker", "superchart"],
    )
    def test_to_dict_decodes_back(self, chart: Chart) -> None:
        """Test to_dict output decodes to an equal chart for every chart type."""
        assert deserialize_chart(chart.to_dict()) == chart
