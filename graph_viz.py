"""Tabular export and a static chart of a populated ``Graph``.

``graph_frame`` flattens the reduced bucket values into a DataFrame (rows in
the graph's rotated display order), which can be written to CSV or drawn as a
stacked bar chart in the same author palette as the call image.
"""

from __future__ import annotations

import logging
import os

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402
import seaborn as sns  # noqa: E402

import config  # noqa: E402
from graph import Graph  # noqa: E402

logger = logging.getLogger(__name__)


def graph_frame(graph: Graph) -> pd.DataFrame:
    """One row per bucket with a column per author plus ``total``.

    Args:
        graph: A populated graph.

    Returns:
        DataFrame indexed by bucket label, in rotated display order, with
        the reduced value of each author and the bucket total.  Columns
        are in author registry order.
    """
    records = []
    labels = []
    for _, label, reduced in graph.rows():
        labels.append(label)
        records.append(dict(zip(graph.authors, reduced)))
    df = pd.DataFrame.from_records(records, columns=list(graph.authors))
    df.index = pd.Index(labels, name="bucket")
    df["total"] = df.sum(axis=1)
    return df


def save_graph_csv(graph: Graph, path: str) -> None:
    """Write ``graph_frame(graph)`` to *path*, creating parent directories."""
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    graph_frame(graph).to_csv(path)
    logger.info("Wrote %s", path)


def _palette(count: int) -> list[str]:
    colors = config.RASTER_PALETTE
    return ["#%02x%02x%02x" % colors[i % len(colors)] for i in range(count)]


def plot_graph(graph: Graph, path: str, title: str, ylabel: str = "Total") -> None:
    """Save a stacked bar chart of the graph's buckets to *path*.

    Args:
        graph: A populated graph.
        path: Output image path (format taken from the extension).
        title: Chart title.
        ylabel: Label of the value axis.
    """
    df = graph_frame(graph).drop(columns="total")
    sns.set_theme(style="darkgrid")
    fig, ax = plt.subplots(figsize=(15, 8))
    bottom = pd.Series(0, index=df.index, dtype=float)
    for author, color in zip(df.columns, _palette(len(df.columns))):
        ax.bar(df.index, df[author], bottom=bottom, color=color, alpha=0.8, label=author)
        bottom += df[author]
    ax.set_title(title, fontsize=14, pad=20)
    ax.set_xlabel("Bucket", fontsize=12)
    ax.set_ylabel(ylabel, fontsize=12)
    if len(df.columns):
        ax.legend()
    # Long day grids get unreadable with every label shown.
    step = max(len(df.index) // 24, 1)
    ax.set_xticks(range(0, len(df.index), step))
    ax.set_xticklabels(df.index[::step], rotation=45)
    fig.tight_layout()
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info("Wrote %s", path)
