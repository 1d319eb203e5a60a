"""Pathway overlap (Jaccard) matrix and clustering-based category order.

1. Build the pairwise overlap matrix between marker sets (`overlap_matrix`)
2. Convert it to a dissimilarity matrix (`distance_matrix`)
3. Cluster hierarchically and read off the leaf order (`category_order`)

Conventions
-----------
- The diagonal is fixed at 1.0, so self-distance is 0.
- Two empty sets have overlap 0 (0/0 is otherwise undefined).
- Linkage defaults to average linkage; the leaf order depends on it.
"""

from typing import Iterable, Mapping

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import leaves_list, linkage
from scipy.spatial.distance import squareform

LINKAGE_METHODS = ("average", "complete")


def jaccard(a: frozenset, b: frozenset) -> float:
    union = len(a | b)
    if union == 0:
        return 0.0
    return len(a & b) / union


def overlap_matrix(categories: Mapping[str, Iterable[str]]) -> pd.DataFrame:
    """
    Pairwise Jaccard overlap between named marker sets.

    Parameters
    ----------
    categories : Mapping[str, Iterable[str]]
        Category name -> marker ids. Iteration order gives row/column order.

    Returns
    -------
    pd.DataFrame
        Square symmetric matrix labelled by category, diagonal 1.0.
    """
    names = [str(k) for k in categories]
    sets = [frozenset(v) for v in categories.values()]
    n = len(names)
    mat = np.eye(n, dtype=float)
    for i in range(n):
        for j in range(i + 1, n):
            v = jaccard(sets[i], sets[j])
            mat[i, j] = v
            mat[j, i] = v
    return pd.DataFrame(mat, index=names, columns=names)


def distance_matrix(overlap: pd.DataFrame) -> pd.DataFrame:
    """``1 - overlap`` with a zero diagonal."""
    if overlap.shape[0] != overlap.shape[1]:
        raise ValueError(f"overlap must be square, got shape={overlap.shape}")
    dist = 1.0 - overlap.to_numpy(dtype=float)
    np.fill_diagonal(dist, 0.0)
    return pd.DataFrame(dist, index=overlap.index, columns=overlap.columns)


def category_order(overlap: pd.DataFrame, method: str = "average") -> list[str]:
    """
    Leaf order of a hierarchical clustering over ``1 - overlap``.

    Parameters
    ----------
    overlap : pd.DataFrame
        Output of `overlap_matrix`.
    method : {'average', 'complete'}, default='average'
        Linkage method passed to `scipy.cluster.hierarchy.linkage`.

    Returns
    -------
    list[str]
        Permutation of the category names; categories sharing many markers
        end up adjacent.
    """
    if method not in LINKAGE_METHODS:
        raise ValueError(f"Unsupported linkage method: {method} (choose from: {', '.join(LINKAGE_METHODS)})")
    names = [str(x) for x in overlap.index]
    if len(names) < 2:
        return names
    dist = distance_matrix(overlap).to_numpy()
    # squareform expects an exactly symmetric matrix.
    dist = np.clip((dist + dist.T) / 2.0, 0.0, 1.0)
    condensed = squareform(dist, checks=False)
    Z = linkage(condensed, method=method)
    return [names[i] for i in leaves_list(Z)]


def order_categories(
    categories: Mapping[str, Iterable[str]],
    method: str = "average",
) -> tuple[list[str], pd.DataFrame]:
    """Overlap matrix and clustering order in one call; the matrix is returned reordered."""
    overlap = overlap_matrix(categories)
    order = category_order(overlap, method=method)
    return order, overlap.loc[order, order]
