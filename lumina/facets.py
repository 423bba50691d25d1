"""
Per-entity comparison charts ("facets").

Each selected entity's row is transposed so its metrics become chart
categories: ``{"Well": "A", "Calcite": 10, "Dolomite": 5}`` becomes
``[{"metric": "Calcite", "value": 10}, {"metric": "Dolomite", "value": 5}]``.
When several rows share an entity label only the first one is used.
"""
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from . import config
from .data_model import ChartConfig, ChartType, Dataset, FacetChart
from .inference import numeric_columns, text_columns
from .values import to_number, to_text

FACET_CHART_TYPES = (ChartType.RADAR, ChartType.BAR)


def entity_values(dataset: Dataset, group_key: str) -> List[str]:
    """Distinct labels of ``group_key`` in first-occurrence order (blanks skipped)."""
    if not group_key:
        return []
    seen = {}
    for row in dataset.rows:
        value = row.get(group_key)
        if value is None or value == "":
            continue
        seen.setdefault(to_text(value), None)
    return list(seen)


def metric_columns(dataset: Dataset) -> List[str]:
    return numeric_columns(dataset)


def _toggle(items: Tuple[str, ...], item: str) -> Tuple[str, ...]:
    if item in items:
        return tuple(i for i in items if i != item)
    return items + (item,)


@dataclass(frozen=True)
class FacetSelection:
    group_key: Optional[str]
    entities: Tuple[str, ...] = ()
    metrics: Tuple[str, ...] = ()
    chart_type: ChartType = ChartType.RADAR

    @classmethod
    def default(cls, dataset: Dataset) -> "FacetSelection":
        """First text column as group, its first few entities, every numeric metric."""
        groups = text_columns(dataset)
        group_key = groups[0] if groups else None
        return cls(
            group_key=group_key,
            entities=tuple(entity_values(dataset, group_key)[:config.FACET_DEFAULT_ENTITIES]),
            metrics=tuple(metric_columns(dataset)),
        )

    def with_group(self, dataset: Dataset, group_key: str) -> "FacetSelection":
        """Switch grouping column; entity selection resets to the default first few."""
        return replace(
            self,
            group_key=group_key,
            entities=tuple(entity_values(dataset, group_key)[:config.FACET_DEFAULT_ENTITIES]),
        )

    def toggle_entity(self, entity: str) -> "FacetSelection":
        return replace(self, entities=_toggle(self.entities, entity))

    def toggle_metric(self, metric: str) -> "FacetSelection":
        return replace(self, metrics=_toggle(self.metrics, metric))

    def charts(self, dataset: Dataset) -> List[FacetChart]:
        if not self.group_key:
            return []
        return build_facet_charts(dataset, self.group_key, self.entities, self.metrics, self.chart_type)


def build_facet_charts(dataset: Dataset, group_key: str, entities: Sequence[str],
                       metrics: Sequence[str], chart_type=ChartType.RADAR) -> List[FacetChart]:
    chart_type = ChartType(chart_type)
    if chart_type not in FACET_CHART_TYPES:
        raise ValueError(f"Facet charts must be RADAR or BAR, not {chart_type.value}")

    charts = []
    for entity in entities:
        row = next((r for r in dataset.rows if to_text(r.get(group_key)) == entity), None)
        if row is None:
            continue
        rows = tuple({"metric": m, "value": to_number(row.get(m)) or 0} for m in metrics)
        cfg = ChartConfig(
            type=chart_type,
            title=f"{group_key}: {entity}",
            description=f"Analysis of {len(metrics)} variables for {entity}",
            x_axis_key="metric",
            y_axis_keys=("value",),
            color_palette=config.FACET_PALETTE,
        )
        charts.append(FacetChart(entity=entity, config=cfg, rows=rows))
    return charts
