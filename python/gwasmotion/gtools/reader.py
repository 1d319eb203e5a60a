"""
Readers for association tables, pathway mappings and chromosome lengths.

All tables are tab-separated with a header line. Readers return plain
pandas objects; they do not log and they do not plot.
"""

from pathlib import Path
from typing import Optional, Union

import numpy as np
import pandas as pd

from .cleaner import chrom_sort_key, clean_ids
from .registry import ChromRegistry, InvalidPosition, builtin_assembly_name

pathlike = Union[str, Path]
__all__ = [
    "read_assoc",
    "read_pathways",
    "build_categories",
    "read_chrom_lengths",
    "resolve_registry",
]

ASSOC_COLUMNS = ["id", "chrom", "pos", "p", "score"]


def read_assoc(
    path: pathlike,
    chr_col: str = "chrom",
    pos_col: str = "pos",
    id_col: str = "id",
    p_col: str = "p",
) -> pd.DataFrame:
    """
    Read a GWAS association table.

    Rows without a marker id or without a usable p-value are dropped,
    as are p-values outside (0, 1]. Duplicated ids keep their first row.
    A non-integer position raises ``InvalidPosition``.

    Returns
    -------
    pd.DataFrame
        Columns ``id, chrom, pos, p, score`` with ``score = -log10(p)``.
    """
    df = pd.read_csv(
        path,
        sep="\t",
        usecols=[chr_col, pos_col, id_col, p_col],
        dtype={chr_col: str, id_col: str},
    )
    df = df.rename(columns={chr_col: "chrom", pos_col: "pos", id_col: "id", p_col: "p"})
    df["id"] = clean_ids(df["id"])
    df["chrom"] = df["chrom"].astype(str).str.strip()
    df["p"] = pd.to_numeric(df["p"], errors="coerce")
    df["pos"] = pd.to_numeric(df["pos"], errors="coerce")
    df = df.dropna(subset=["id", "p", "pos"])
    df = df[(df["p"] > 0) & (df["p"] <= 1)]
    df = df.drop_duplicates(subset="id", keep="first")
    fractional = df["pos"] != np.floor(df["pos"])
    if fractional.any():
        first = df.loc[fractional].iloc[0]
        raise InvalidPosition(
            f"{path}: {int(fractional.sum())} non-integer position(s); "
            f"first: {first['id']} at {first['pos']}"
        )
    df["pos"] = df["pos"].astype(np.int64)
    df["score"] = -np.log10(df["p"].to_numpy(dtype=float))
    return df[ASSOC_COLUMNS].reset_index(drop=True)


def read_pathways(
    path: pathlike,
    id_col: str = "id",
    pathway_col: str = "pathway",
    top_col: Optional[str] = "top",
) -> pd.DataFrame:
    """
    Read a marker-to-pathway mapping table.

    Returns
    -------
    pd.DataFrame
        Columns ``id, pathway`` and ``top`` (top-level pathway) when
        ``top_col`` is given.
    """
    cols = [id_col, pathway_col] + ([top_col] if top_col else [])
    df = pd.read_csv(path, sep="\t", usecols=cols, dtype=str)
    rename = {id_col: "id", pathway_col: "pathway"}
    if top_col:
        rename[top_col] = "top"
    df = df.rename(columns=rename)
    for col in df.columns:
        df[col] = clean_ids(df[col])
    return df.dropna(subset=["id", "pathway"]).drop_duplicates().reset_index(drop=True)


def build_categories(
    mapping: pd.DataFrame,
    column: str = "pathway",
    min_size: int = 1,
    universe: Optional[set] = None,
) -> dict[str, frozenset]:
    """
    Group marker ids by category.

    Categories keep the order of their first appearance in ``mapping``.
    When ``universe`` is given, ids outside it are discarded before the
    ``min_size`` filter is applied.
    """
    if column not in mapping.columns:
        raise ValueError(f"Mapping table has no column '{column}'.")
    sub = mapping.dropna(subset=["id", column])
    categories: dict[str, frozenset] = {}
    for name, ids in sub.groupby(column, sort=False)["id"]:
        members = set(ids)
        if universe is not None:
            members &= universe
        if len(members) >= min_size:
            categories[str(name)] = frozenset(members)
    return categories


def read_chrom_lengths(path: pathlike, natural_sort: bool = False) -> ChromRegistry:
    """
    Read a two-column (chromosome, length) table without header.

    Lines starting with '#' are ignored. File order defines the axis
    order unless ``natural_sort`` is set.
    """
    df = pd.read_csv(path, sep="\t", header=None, comment="#", usecols=[0, 1], dtype={0: str})
    pairs = [(str(c).strip(), int(x)) for c, x in zip(df[0], df[1])]
    if natural_sort:
        pairs = sorted(pairs, key=lambda item: chrom_sort_key(item[0]))
    return ChromRegistry.from_pairs(pairs)


def resolve_registry(value: str) -> ChromRegistry:
    """Builtin assembly name (GRCh37/GRCh38/hg19/hg38) or a lengths file."""
    text = str(value).strip()
    if builtin_assembly_name(text) is not None:
        return ChromRegistry.builtin(text)
    if not Path(text).expanduser().is_file():
        raise ValueError(f"Unknown assembly or missing lengths file: {value}")
    return read_chrom_lengths(Path(text).expanduser())
