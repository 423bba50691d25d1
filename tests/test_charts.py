import pytest
from matplotlib.figure import Figure

from lumina.charts import render_chart
from lumina.data_model import ChartConfig, ChartType

ROWS = [
    {"region": "north", "cost": 10, "speed": 3.5},
    {"region": "south", "cost": 14, "speed": "n/a"},
    {"region": "north", "cost": 7, "speed": 2.0},
    {"region": "east", "cost": 21, "speed": 6.1},
]


def _cfg(chart_type, x="region", y=("cost",), palette=("#E64B35", "#4DBBD5")):
    return ChartConfig(type=chart_type, title="t", x_axis_key=x, y_axis_keys=y, color_palette=palette)


def _message(fig):
    return [t.get_text() for ax in fig.axes for t in ax.texts]


@pytest.mark.parametrize("chart_type", list(ChartType))
def test_every_chart_type_renders(chart_type):
    fig = render_chart(_cfg(chart_type, y=("cost", "speed")), ROWS)
    assert isinstance(fig, Figure)
    assert fig.axes
    assert not {"No data to plot", "No numeric values to plot"} & set(_message(fig))


def test_scatter_uses_numeric_x():
    fig = render_chart(_cfg(ChartType.SCATTER, x="speed"), ROWS)
    assert fig.axes[0].get_xlabel() == "speed"


def test_radar_is_polar():
    fig = render_chart(_cfg(ChartType.RADAR), ROWS)
    assert fig.axes[0].name == "polar"


def test_missing_column_shows_placeholder():
    fig = render_chart(_cfg(ChartType.BAR, y=("nope",)), ROWS)
    assert _message(fig) == ["No data to plot"]


def test_no_rows_shows_placeholder():
    assert _message(render_chart(_cfg(ChartType.LINE), [])) == ["No data to plot"]


def test_pie_without_positive_values():
    rows = [{"region": "a", "cost": 0}, {"region": "b", "cost": "x"}]
    assert _message(render_chart(_cfg(ChartType.PIE), rows)) == ["No numeric values to plot"]


def test_boxplot_without_numeric_values():
    rows = [{"region": "a", "cost": "x"}]
    assert _message(render_chart(_cfg(ChartType.BOXPLOT), rows)) == ["No numeric values to plot"]


def test_empty_palette_falls_back():
    fig = render_chart(_cfg(ChartType.BAR, palette=()), ROWS)
    assert fig.axes[0].patches


def test_legend_only_for_several_series():
    single = render_chart(_cfg(ChartType.LINE), ROWS)
    several = render_chart(_cfg(ChartType.LINE, y=("cost", "speed")), ROWS)
    assert single.axes[0].get_legend() is None
    assert several.axes[0].get_legend() is not None
