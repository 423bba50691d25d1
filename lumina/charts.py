"""
matplotlib rendering of ``ChartConfig`` objects.

Charts are drawn on a fresh ``matplotlib.figure.Figure`` (no pyplot
state), so Streamlit reruns and PDF export can share the same figures.
Values that don't coerce to numbers plot as gaps.
"""
from typing import Sequence

import numpy as np
from matplotlib.figure import Figure

from . import config
from .boxplot import box_plot_stats
from .data_model import ChartConfig, ChartType, Dataset, Row
from .values import to_number, to_text

FONT_SIZE = 8


def _series(rows: Sequence[Row], key: str) -> np.ndarray:
    values = [to_number(r.get(key)) for r in rows]
    return np.array([np.nan if v is None else v for v in values], dtype=float)


def _labels(rows: Sequence[Row], key: str):
    return [to_text(r.get(key)) for r in rows]


def _no_data(fig: Figure, message="No data to plot") -> Figure:
    ax = fig.add_subplot(111)
    ax.text(0.5, 0.5, message, transform=ax.transAxes, ha="center", va="center")
    ax.axis("off")
    return fig


def _style_axes(ax, cfg: ChartConfig):
    ax.set_title(cfg.title, fontsize=FONT_SIZE + 2, pad=6)
    ax.tick_params(labelsize=FONT_SIZE)
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)


def _bar(ax, cfg, rows):
    labels = _labels(rows, cfg.x_axis_key)
    x = np.arange(len(rows))
    width = 0.8 / len(cfg.y_axis_keys)
    for i, key in enumerate(cfg.y_axis_keys):
        ax.bar(x + i * width - 0.4 + width / 2, _series(rows, key), width,
               label=key, color=cfg.color(i, config.NPG_PALETTE))
    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=45, ha="right")


def _line(ax, cfg, rows, fill=False):
    labels = _labels(rows, cfg.x_axis_key)
    x = np.arange(len(rows))
    for i, key in enumerate(cfg.y_axis_keys):
        color = cfg.color(i, config.NPG_PALETTE)
        y = _series(rows, key)
        ax.plot(x, y, label=key, color=color, linewidth=1.5, marker=None if fill else "o", markersize=3)
        if fill:
            ax.fill_between(x, y, alpha=0.3, color=color)
    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=45, ha="right")


def _scatter(ax, cfg, rows):
    x = _series(rows, cfg.x_axis_key)
    for i, key in enumerate(cfg.y_axis_keys):
        ax.scatter(x, _series(rows, key), s=12, label=key, color=cfg.color(i, config.NPG_PALETTE))
    ax.set_xlabel(cfg.x_axis_key, fontsize=FONT_SIZE)


def _pie(ax, cfg, rows):
    labels = _labels(rows, cfg.x_axis_key)
    values = _series(rows, cfg.y_axis_keys[0])
    keep = [i for i, v in enumerate(values) if np.isfinite(v) and v > 0]
    if not keep:
        return False
    ax.pie([values[i] for i in keep], labels=[labels[i] for i in keep],
           colors=[cfg.color(i, config.NPG_PALETTE) for i in range(len(keep))],
           textprops={"fontsize": FONT_SIZE})
    ax.axis("equal")
    return True


def _boxplot(ax, cfg, rows):
    stats = box_plot_stats(Dataset(tuple(rows)), cfg.x_axis_key, cfg.y_axis_keys[0])
    if not stats:
        return False
    boxes = [{"label": s.group, "whislo": s.min, "q1": s.q1, "med": s.median,
              "q3": s.q3, "whishi": s.max, "fliers": []} for s in stats]
    artists = ax.bxp(boxes, showfliers=False, patch_artist=True)
    for i, patch in enumerate(artists["boxes"]):
        patch.set_facecolor(cfg.color(i, config.NPG_PALETTE))
        patch.set_alpha(0.7)
    ax.set_ylabel(cfg.y_axis_keys[0], fontsize=FONT_SIZE)
    for lbl in ax.get_xticklabels():
        lbl.set_rotation(45)
        lbl.set_horizontalalignment("right")
    return True


def _radar(fig, cfg, rows):
    labels = _labels(rows, cfg.x_axis_key)
    angles = np.linspace(0, 2 * np.pi, len(rows), endpoint=False)
    closed = np.concatenate([angles, angles[:1]])
    ax = fig.add_subplot(111, projection="polar")
    for i, key in enumerate(cfg.y_axis_keys):
        y = np.nan_to_num(_series(rows, key))
        y = np.concatenate([y, y[:1]])
        color = cfg.color(i, config.NPG_PALETTE)
        ax.plot(closed, y, color=color, linewidth=1.5, label=key)
        ax.fill(closed, y, color=color, alpha=0.25)
    ax.set_xticks(angles)
    ax.set_xticklabels(labels, fontsize=FONT_SIZE)
    ax.tick_params(labelsize=FONT_SIZE)
    ax.set_title(cfg.title, fontsize=FONT_SIZE + 2, pad=12)
    return ax


def render_chart(cfg: ChartConfig, rows: Sequence[Row], *, width=config.FIG_W, height=config.FIG_H) -> Figure:
    """Draw one chart from ``rows`` and return the figure."""
    rows = list(rows)
    fig = Figure(figsize=(width, height))
    columns = set(rows[0].keys()) if rows else set()
    needed = {cfg.x_axis_key, *cfg.y_axis_keys}
    if not rows or not cfg.y_axis_keys or not needed <= columns:
        return _no_data(fig)

    if cfg.type == ChartType.RADAR:
        ax = _radar(fig, cfg, rows)
    else:
        ax = fig.add_subplot(111)
        drawn = True
        if cfg.type == ChartType.BAR:
            _bar(ax, cfg, rows)
        elif cfg.type == ChartType.LINE:
            _line(ax, cfg, rows)
        elif cfg.type == ChartType.AREA:
            _line(ax, cfg, rows, fill=True)
        elif cfg.type == ChartType.SCATTER:
            _scatter(ax, cfg, rows)
        elif cfg.type == ChartType.PIE:
            drawn = _pie(ax, cfg, rows)
        elif cfg.type == ChartType.BOXPLOT:
            drawn = _boxplot(ax, cfg, rows)
        if not drawn:
            fig.clf()
            return _no_data(fig, "No numeric values to plot")
        _style_axes(ax, cfg)

    if len(cfg.y_axis_keys) > 1 and cfg.type not in (ChartType.PIE, ChartType.BOXPLOT):
        ax.legend(fontsize=FONT_SIZE, frameon=False)
    fig.tight_layout()
    return fig
