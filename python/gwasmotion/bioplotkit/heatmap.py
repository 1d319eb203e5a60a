from typing import Optional, Sequence

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from matplotlib import colors as mcolors
from matplotlib.colorbar import ColorbarBase
from matplotlib.ticker import FixedLocator


def _rgb_luminance(color: object) -> float:
    r, g, b = mcolors.to_rgb(color)
    return float(0.2126 * r + 0.7152 * g + 0.0722 * b)


def overlap_heatmap(
    overlap: pd.DataFrame,
    ax: plt.Axes,
    order: Optional[Sequence[str]] = None,
    cmap: str = "Greys",
    label_size: float = 6.0,
    annotate: bool = False,
) -> plt.Axes:
    '''
    Square heatmap of a pathway overlap matrix, rows and columns in ``order``.
    Cell (i, j) is drawn at x = j, y = i with row 0 on top.
    '''
    names = list(overlap.index) if order is None else list(order)
    C = overlap.loc[names, names].to_numpy(dtype=float)
    n = C.shape[0]
    cmap_obj = plt.get_cmap(cmap) if isinstance(cmap, str) else cmap
    # Enforce "light -> dark" mapping so 0 is light and 1 is dark.
    if _rgb_luminance(cmap_obj(0.0)) < _rgb_luminance(cmap_obj(1.0)):
        cmap_obj = cmap_obj.reversed()
    ax.pcolormesh(
        np.arange(n + 1) - 0.5,
        np.arange(n + 1) - 0.5,
        C,
        cmap=cmap_obj,
        vmin=0,
        vmax=1,
        edgecolors="white",
        linewidth=0.2,
    )
    if annotate:
        for i in range(n):
            for j in range(n):
                ax.text(
                    j, i, f"{C[i, j]:.2f}",
                    ha="center", va="center", fontsize=label_size * 0.8,
                    color="white" if C[i, j] > 0.5 else "black",
                )

    # Discrete 10-step colorbar in a dedicated inset axis on the right.
    edges = np.round(np.arange(0.0, 1.0 + 1e-9, 0.1), 10)
    label_ticks = np.round(np.arange(0.0, 1.0 + 1e-9, 0.2), 10)
    mids = 0.5 * (edges[:-1] + edges[1:])
    cmap_disc = mcolors.ListedColormap([cmap_obj(float(m)) for m in mids])
    norm_disc = mcolors.BoundaryNorm(edges, ncolors=cmap_disc.N, clip=True)
    cax = ax.inset_axes([1.03, 0.0, 0.03, 0.5], transform=ax.transAxes)
    cb = ColorbarBase(
        cax,
        cmap=cmap_disc,
        norm=norm_disc,
        boundaries=edges,
        ticks=label_ticks,
        spacing="proportional",
        orientation="vertical",
        drawedges=True,
    )
    cb.outline.set_linewidth(0.5)
    cb.set_ticklabels([f"{float(v):g}" for v in label_ticks])
    minor_ticks = [float(v) for v in edges if not np.any(np.isclose(v, label_ticks))]
    cb.ax.yaxis.set_minor_locator(FixedLocator(minor_ticks))
    cb.ax.tick_params(axis="y", which="both", labelsize=label_size, length=2.0, width=0.5)
    cb.set_label("Jaccard overlap", fontsize=label_size)

    ax.set_xticks(np.arange(n), names, rotation=90, fontsize=label_size)
    ax.set_yticks(np.arange(n), names, fontsize=label_size)
    ax.set_xlim(-0.5, n - 0.5)
    ax.set_ylim(n - 0.5, -0.5)
    ax.set_aspect("equal", adjustable="box")
    for side in ("right", "top"):
        ax.spines[side].set_visible(False)
    return ax
