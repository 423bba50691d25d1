"""Per-group five-number summaries for box-plot charts (nearest rank, no interpolation)."""
from typing import List

import numpy as np

from .data_model import BoxPlotStat, Dataset
from .values import to_number, to_text


def nearest_rank(sorted_values: np.ndarray, fraction: float) -> float:
    """Value at index floor(n * fraction) of an ascending array."""
    return float(sorted_values[int(np.floor(len(sorted_values) * fraction))])


def box_plot_stats(dataset: Dataset, group_key: str, value_key: str) -> List[BoxPlotStat]:
    groups = {}
    for row in dataset.rows:
        label = row.get(group_key)
        if label is None:
            continue
        bucket = groups.setdefault(to_text(label), [])
        x = to_number(row.get(value_key))
        if x is not None:
            bucket.append(x)

    stats = []
    for label, values in groups.items():
        # groups with no numeric values have nothing to draw
        if not values:
            continue
        v = np.sort(np.asarray(values, dtype=float))
        stats.append(BoxPlotStat(
            group=label,
            min=float(v[0]),
            q1=nearest_rank(v, 0.25),
            median=nearest_rank(v, 0.5),
            q3=nearest_rank(v, 0.75),
            max=float(v[-1]),
            count=len(v),
        ))
    return stats
