"""
Marker classification for Manhattan coloring.

Every marker gets one display label. The default label alternates with the
chromosome's registry index (even/odd), and markers found in a highlighted
id set take that set's name instead. Sets are applied in the order given,
so a marker in several sets ends up with the last one.
"""

from typing import Iterable, Mapping, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib import colors as mcolors

from .registry import ChromRegistry

IdSets = Union[Mapping[str, Iterable[str]], Sequence[tuple[str, Iterable[str]]]]
BASE_LABELS = ("even", "odd")


def _ordered_sets(id_sets: IdSets) -> list[tuple[str, frozenset]]:
    items = id_sets.items() if isinstance(id_sets, Mapping) else id_sets
    out: list[tuple[str, frozenset]] = []
    for name, ids in items:
        out.append((str(name), ids if isinstance(ids, frozenset) else frozenset(ids)))
    return out


def classify_markers(
    markers: pd.DataFrame,
    registry: ChromRegistry,
    id_sets: IdSets = (),
    base_labels: tuple[str, str] = BASE_LABELS,
) -> pd.Series:
    """
    Assign a display label to every marker.

    Parameters
    ----------
    markers : pd.DataFrame
        Needs ``id``, ``chrom`` and ``pos`` columns.
    registry : ChromRegistry
        Chromosomes and lengths; unknown chromosomes or out-of-range
        positions raise ``InvalidChromosome`` / ``InvalidPosition``.
    id_sets : mapping or sequence of (name, ids)
        Highlight sets in priority order (later wins). A set named like
        one of ``base_labels`` raises ``ValueError``.
    base_labels : (str, str)
        Labels for even and odd chromosome indices.

    Returns
    -------
    pd.Series
        Labels aligned with ``markers.index``, input order preserved.
    """
    sets = _ordered_sets(id_sets)
    clash = [name for name, _ in sets if name in base_labels]
    if clash:
        raise ValueError(
            f"Highlight set name(s) collide with background labels: {', '.join(clash)}"
        )
    registry.coordinates(markers["chrom"], markers["pos"])
    idx = registry.chrom_indices(markers["chrom"])
    labels = np.where(idx % 2 == 0, base_labels[0], base_labels[1]).astype(object)

    ids = markers["id"].astype(str).to_numpy()
    for name, members in sets:
        if not members:
            continue
        hit = np.fromiter((m in members for m in ids), dtype=bool, count=len(ids))
        labels[hit] = name
    return pd.Series(labels, index=markers.index, name="category")


def cmap_colors(cmap: str, n: int) -> list[str]:
    """
    ``n`` hex colors from a colormap. Qualitative maps (tab10, Set1, ...)
    repeat their own bins; continuous maps are sampled evenly.
    """
    cmap_obj = plt.get_cmap(cmap)
    if cmap_obj.N <= 32:
        return [mcolors.to_hex(cmap_obj(i % cmap_obj.N)) for i in range(n)]
    return [mcolors.to_hex(cmap_obj(i / max(1, n - 1))) for i in range(n)]


def highlight_palette(categories: Sequence[str], cmap: str = "tab10") -> dict[str, str]:
    """One color per category, in order."""
    return dict(zip(categories, cmap_colors(cmap, len(categories))))
