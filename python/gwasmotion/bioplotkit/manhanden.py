from typing import Mapping, Optional, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib import colors as mcolors
from matplotlib.figure import Figure
from matplotlib.gridspec import GridSpec

from gwasmotion.gtools.registry import ChromRegistry
from gwasmotion.motion.sequencer import Frame


def compress_markers(df: pd.DataFrame, target: int = 100_000, pvalue: str = "p") -> pd.DataFrame:
    """
    Thin a large marker table to about ``target`` rows for plotting.

    Markers with p <= 10000 / n are all kept. The others are taken in
    descending p order, cut into runs of ``n // target`` and only the
    smallest p of each run survives. Input order is preserved.
    """
    df = df.reset_index(drop=True)
    n_snp = df.shape[0]
    if n_snp <= target:
        return df
    run = n_snp // target
    weak = df[pvalue].to_numpy() > 10_000 / n_snp
    keep = np.flatnonzero(~weak)

    weak_idx = np.flatnonzero(weak)
    n_runs = weak_idx.size // run
    if n_runs > 0:
        p_weak = df[pvalue].to_numpy()[weak_idx]
        by_p = weak_idx[np.argsort(-p_weak, kind="stable")][: n_runs * run]
        by_p = np.sort(by_p).reshape(n_runs, run)
        best = by_p[np.arange(n_runs), np.argmin(df[pvalue].to_numpy()[by_p], axis=1)]
        keep = np.concatenate([keep, best])
    return df.iloc[np.sort(keep)].reset_index(drop=True)


class ManhattanPlot:
    """
    Manhattan renderer on a fixed chromosome registry.

    Parameters
    ----------
    markers : pd.DataFrame
        Marker table with ``id``, ``chrom``, ``pos`` and (optionally)
        ``score`` columns. Every marker any frame refers to must be here.
    registry : ChromRegistry
        Axis layout; x bounds are [0, registry.total_length].
    color_set : list[str] or None
        Colors for alternating chromosomes, e.g. ['black','grey'].
    highlight_colors : Mapping[str, str] or None
        Category -> color for highlighted categories.
    ylim : float or None
        Fixed upper y limit; animations should set it so frames share an axis.
    threshold : float or None
        Significance line on -log10(p) drawn on every frame.
    categories : pd.Series or None
        Static display label per marker id, used by scalar frames.
    figsize : (float, float), default (12, 5)
    dpi : int, default 100
    scatter_size : float, default 8.0

    Notes
    -----
    Genome coordinates are computed from the registry each time a frame is
    drawn; only the marker table is stored.
    """

    def __init__(
        self,
        markers: pd.DataFrame,
        registry: ChromRegistry,
        color_set: Union[list[str], None] = None,
        highlight_colors: Optional[Mapping[str, str]] = None,
        ylim: Optional[float] = None,
        threshold: Optional[float] = None,
        categories: Optional[pd.Series] = None,
        figsize: tuple[float, float] = (12.0, 5.0),
        dpi: int = 100,
        scatter_size: float = 8.0,
    ) -> None:
        if color_set is None or len(color_set) == 0:
            color_set = ["black", "grey"]
        cols = ["id", "chrom", "pos"] + (["score"] if "score" in markers.columns else [])
        table = markers[cols].copy()
        table["id"] = table["id"].astype(str)
        if table["id"].duplicated().any():
            raise ValueError("Marker ids must be unique.")
        # Fail early on markers the registry cannot place.
        registry.coordinates(table["chrom"], table["pos"])
        self.markers = table.set_index("id")
        self.registry = registry
        self.color_set = list(color_set)
        self.highlight_colors = dict(highlight_colors or {})
        self.ylim = ylim
        self.threshold = threshold
        self.categories = categories
        self.figsize = figsize
        self.dpi = dpi
        self.scatter_size = scatter_size

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------
    def layout(self, ids: pd.Index) -> pd.DataFrame:
        """x (genome coordinate) and z (registry index) for the given ids."""
        sub = self.markers.loc[ids]
        return pd.DataFrame(
            {
                "x": self.registry.coordinates(sub["chrom"], sub["pos"]),
                "z": self.registry.chrom_indices(sub["chrom"]),
            },
            index=sub.index,
        )

    def _base_colors(self, z: np.ndarray) -> list[str]:
        return [self.color_set[int(i) % len(self.color_set)] for i in z]

    def new_axes(self) -> tuple[Figure, plt.Axes]:
        fig = plt.figure(figsize=list(self.figsize), dpi=self.dpi)
        gs = GridSpec(12, 1, figure=fig)
        ax = fig.add_subplot(gs[0:12, 0])
        return fig, ax

    # ------------------------------------------------------------------
    # Manhattan plot
    # ------------------------------------------------------------------
    def manhattan(
        self,
        scores: Optional[pd.Series] = None,
        categories: Optional[pd.Series] = None,
        alpha: Optional[pd.Series] = None,
        threshold: Optional[float] = None,
        title: Optional[str] = None,
        title_alpha: float = 1.0,
        ax: Union[plt.Axes, None] = None,
        **kwargs,
    ) -> plt.Axes:
        """
        Draw a Manhattan plot.

        Parameters
        ----------
        scores : pd.Series or None
            -log10(p) per marker id. Defaults to the ``score`` column.
        categories : pd.Series or None
            Display label per marker id. Markers with a highlight label are
            drawn on top in their category color; markers with a missing
            label are not highlighted.
        alpha : pd.Series or None
            Opacity of the highlight layer per marker id.
        threshold : float or None
            Genome-wide significance threshold on -log10(p); drawn as a
            dashed line.
        title, title_alpha :
            Axis title and its opacity.
        ax : matplotlib.axes.Axes or None
            Existing Axes to draw on. If None, a new figure is created.
        **kwargs :
            Additional keyword arguments passed to ax.scatter.

        Returns
        -------
        ax : matplotlib.axes.Axes
        """
        if scores is None:
            if "score" not in self.markers.columns:
                raise ValueError("No scores given and marker table has no 'score' column.")
            scores = self.markers["score"]
        scores = scores.dropna()
        if ax is None:
            _, ax = self.new_axes()
        kwargs.setdefault("s", self.scatter_size)
        kwargs.setdefault("linewidths", 0)

        pos = self.layout(scores.index)
        ax.scatter(
            pos["x"],
            scores.to_numpy(),
            color=self._base_colors(pos["z"].to_numpy()),
            rasterized=True,
            **kwargs,
        )

        if categories is not None and len(self.highlight_colors) > 0:
            cat = categories.reindex(scores.index)
            hl = cat.isin(list(self.highlight_colors)).to_numpy()
            ids = scores.index[hl]
            a = np.ones(len(ids)) if alpha is None else alpha.reindex(ids).fillna(1.0).to_numpy()
            visible = a > 0
            if visible.any():
                ax.scatter(
                    pos.loc[ids[visible], "x"],
                    scores.loc[ids[visible]].to_numpy(),
                    color=[self.highlight_colors[c] for c in cat.loc[ids[visible]]],
                    alpha=np.clip(a[visible], 0.0, 1.0),
                    zorder=3,
                    rasterized=True,
                    **kwargs,
                )

        if threshold is not None:
            ax.axhline(y=threshold, color="grey", linewidth=1, linestyle="--")

        # axis cosmetics
        ax.set_xticks(self.registry.midpoints, list(self.registry.names))
        ax.set_xlim([0, self.registry.total_length])
        if self.ylim is not None:
            ax.set_ylim([0, self.ylim])
        elif len(scores) > 0:
            ymax = float(scores.max())
            ax.set_ylim([0, ymax + 0.1 * ymax if ymax > 0 else 1.0])
        ax.set_xlabel("Chromosome")
        ax.set_ylabel("-log10(p-value)")
        if title is not None:
            ax.set_title(title, color=mcolors.to_rgba("black", float(np.clip(title_alpha, 0, 1))))
        return ax

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------
    def draw_frame(
        self,
        frame: Frame,
        ax: Union[plt.Axes, None] = None,
        categories: Optional[pd.Series] = None,
        threshold: Optional[float] = None,
        **kwargs,
    ) -> plt.Axes:
        """
        Draw one animation frame.

        Categorical frames (``frame.alpha`` set) carry category labels and
        use the marker table scores; scalar frames carry scores and use the
        static ``categories`` given at construction unless overridden.
        """
        if threshold is None:
            threshold = self.threshold
        if frame.alpha is not None:
            return self.manhattan(
                categories=frame.values,
                alpha=frame.alpha,
                threshold=threshold,
                title=frame.label,
                title_alpha=frame.label_alpha,
                ax=ax,
                **kwargs,
            )
        return self.manhattan(
            scores=frame.values.astype(float),
            categories=self.categories if categories is None else categories,
            threshold=threshold,
            title=frame.label,
            title_alpha=frame.label_alpha,
            ax=ax,
            **kwargs,
        )

    def render(self, frame: Frame) -> Figure:
        """Frame -> new Figure; the caller saves and closes it."""
        fig, ax = self.new_axes()
        self.draw_frame(frame, ax=ax)
        return fig
