"""
Data model for the Lumina dashboard.

A ``Dataset`` is built once per upload and never mutated: filters,
facets and box-plot statistics all derive new sequences that share the
original row dicts.  Rows are plain ``dict`` objects mapping column name
to ``int``/``float``/``str``/``bool``/``None``.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Tuple

import pandas as pd

from .errors import AnalysisError

Row = Dict[str, Any]


@dataclass(frozen=True)
class Dataset:
    """Ordered rows from one source (file order is preserved)."""
    rows: Tuple[Row, ...] = ()
    source: str = ""

    def __post_init__(self):
        if not isinstance(self.rows, tuple):
            object.__setattr__(self, "rows", tuple(self.rows))

    def __len__(self):
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def __bool__(self):
        return bool(self.rows)

    @property
    def columns(self) -> List[str]:
        if not self.rows:
            return []
        return list(self.rows[0].keys())

    def derive(self, rows) -> "Dataset":
        """New dataset over ``rows`` with the same source label."""
        return Dataset(tuple(rows), self.source)

    def head(self, n: int) -> "Dataset":
        return self.derive(self.rows[:n])

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(list(self.rows), columns=self.columns or None)


class ChartType(str, Enum):
    BAR = "BAR"
    LINE = "LINE"
    AREA = "AREA"
    PIE = "PIE"
    SCATTER = "SCATTER"
    BOXPLOT = "BOXPLOT"
    RADAR = "RADAR"


def _require(raw: Mapping, key: str, kind, what: str):
    if key not in raw or raw[key] is None:
        raise AnalysisError(f"{what} is missing required field '{key}'")
    value = raw[key]
    if not isinstance(value, kind):
        raise AnalysisError(f"{what} field '{key}' has the wrong type")
    return value


def _string_list(raw: Mapping, key: str, what: str) -> Tuple[str, ...]:
    items = _require(raw, key, list, what)
    if not all(isinstance(i, str) for i in items):
        raise AnalysisError(f"{what} field '{key}' must be a list of strings")
    return tuple(items)


@dataclass(frozen=True)
class ChartConfig:
    """One chart to render.

    Series ``i`` is drawn in ``color_palette[i % len(color_palette)]``.
    """
    type: ChartType
    title: str
    x_axis_key: str
    y_axis_keys: Tuple[str, ...]
    color_palette: Tuple[str, ...] = ()
    description: str = ""

    def color(self, index: int, fallback=()) -> str:
        palette = self.color_palette or tuple(fallback)
        return palette[index % len(palette)]

    @classmethod
    def from_dict(cls, raw: Mapping) -> "ChartConfig":
        """Validate a chart object as returned by the model (camelCase keys)."""
        if not isinstance(raw, Mapping):
            raise AnalysisError("Chart suggestion is not an object")
        title = _require(raw, "title", str, "Chart")
        type_tag = _require(raw, "type", str, f"Chart '{title}'")
        try:
            chart_type = ChartType(type_tag.upper())
        except ValueError:
            raise AnalysisError(f"Chart '{title}' has unknown type '{type_tag}'") from None
        return cls(
            type=chart_type,
            title=title,
            x_axis_key=_require(raw, "xAxisKey", str, f"Chart '{title}'"),
            y_axis_keys=_string_list(raw, "yAxisKeys", f"Chart '{title}'"),
            color_palette=_string_list(raw, "colorPalette", f"Chart '{title}'"),
            description=str(raw.get("description") or ""),
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Structured report returned by the analysis service."""
    headline: str
    summary: str
    key_insights: Tuple[str, ...] = ()
    charts: Tuple[ChartConfig, ...] = ()

    @classmethod
    def from_dict(cls, raw: Any) -> "AnalysisResult":
        if not isinstance(raw, Mapping):
            raise AnalysisError("AI analysis did not return an object")
        return cls(
            headline=_require(raw, "headline", str, "Analysis"),
            summary=_require(raw, "summary", str, "Analysis"),
            key_insights=_string_list(raw, "keyInsights", "Analysis"),
            charts=tuple(ChartConfig.from_dict(c) for c in _require(raw, "charts", list, "Analysis")),
        )


@dataclass(frozen=True)
class BoxPlotStat:
    """Nearest-rank five-number summary for one group."""
    group: str
    min: float
    q1: float
    median: float
    q3: float
    max: float
    count: int = field(default=0, compare=False)


@dataclass(frozen=True)
class FacetChart:
    """A per-entity chart config paired with its transposed rows."""
    entity: str
    config: ChartConfig
    rows: Tuple[Row, ...]
