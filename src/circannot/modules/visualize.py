"""
visualize - descriptive plots of annotated circRNA candidates.
"""

from __future__ import annotations

from typing import Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from circannot.utils.column_standards import ColumnStandard as C  # noqa: E402

OTHER_LABEL = "other"
MAX_PALETTE_SLICES = 9

X_BREAKS = [1, 10, 50, 100, 250, 500, 750]
Y_BREAKS = [0, 1, 10, 50, 100, 250, 500, 750, 1000, 2000, 3000]


def _sqrt(values):
    return np.sqrt(np.clip(values, 0, None))


def circ_hist(circs: pd.DataFrame, binwidth: float = 0.7) -> Figure:
    """Histogram of junction read counts on square-root axes.

    ``binwidth`` is measured on the square-root scale.
    """
    reads = pd.to_numeric(circs[C.N_READS], errors="coerce").dropna().to_numpy(dtype=float)
    top = float(np.sqrt(reads.max())) if len(reads) else 1.0
    edges = np.square(np.arange(0.0, top + binwidth, binwidth))
    if len(edges) < 2:
        edges = np.array([0.0, binwidth ** 2])

    fig, ax = plt.subplots(figsize=(8, 6))
    ax.hist(reads, bins=edges, color="#333333")
    ax.set_xscale("function", functions=(_sqrt, np.square))
    ax.set_yscale("function", functions=(_sqrt, np.square))
    ax.set_xticks([b for b in X_BREAKS if b <= edges[-1]] or [1])
    counts = np.histogram(reads, bins=edges)[0]
    ymax = counts.max() if len(counts) else 0
    ax.set_yticks([b for b in Y_BREAKS if b <= max(ymax, 1)])
    ax.set_xlabel("#reads on head-to-tail splice junction", fontsize=20)
    ax.set_ylabel("#circRNAs", fontsize=20)
    ax.tick_params(labelsize=16)
    fig.tight_layout()
    return fig


def feature_counts(features: pd.Series, other_threshold: Optional[float] = None) -> pd.Series:
    """Feature counts, largest first, with rare features collapsed into ``other``.

    Args:
        features: One feature label per candidate
        other_threshold: Minimum count to keep a feature; values below 1 are
            a fraction of the number of candidates

    Returns:
        Counts indexed by feature; ``other`` (if any) comes last
    """
    if other_threshold is None:
        threshold = 0
    elif other_threshold < 1:
        threshold = round(other_threshold * len(features))
    else:
        threshold = other_threshold

    counts = features.value_counts()
    rare = counts[counts < threshold]
    kept = counts[counts >= threshold]
    if len(rare):
        other = int(rare.sum()) + int(kept.get(OTHER_LABEL, 0))
        kept = kept.drop(labels=[OTHER_LABEL], errors="ignore")
        kept = kept.sort_values(ascending=False, kind="stable")
        kept = pd.concat([kept, pd.Series({OTHER_LABEL: other})])
    kept.name = "count"
    return kept


def annot_pie(circs: pd.DataFrame, other_threshold: Optional[float] = None) -> Figure:
    """Pie chart of the gene features candidates are spliced from."""
    counts = feature_counts(circs[C.FEATURE], other_threshold)

    colors = None
    if len(counts) <= MAX_PALETTE_SLICES:
        cmap = matplotlib.colormaps["Blues"]
        colors = cmap(np.linspace(0.9, 0.2, len(counts))) if len(counts) > 1 else [cmap(0.9)]

    fig, ax = plt.subplots(figsize=(7, 7))
    ax.pie(counts.to_numpy(), labels=None, colors=colors, startangle=90, counterclock=False)
    ax.legend(counts.index.tolist(), loc="center left", bbox_to_anchor=(1.0, 0.5), frameon=False)
    ax.set_aspect("equal")
    fig.tight_layout()
    return fig


def save_figure(fig: Figure, path) -> None:
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
