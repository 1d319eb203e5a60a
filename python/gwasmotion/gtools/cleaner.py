"""
Label cleaning helpers shared by the readers.
"""

import re

import pandas as pd

from .registry import normalize_chr

_MISSING_TOKENS = {"", ".", "na", "nan", "none", "null"}
_SEX_CHROMS = {"X": 23, "Y": 24, "M": 25, "MT": 25}


def chrom_sort_key(label: object) -> tuple:
    """
    Natural order for chromosome labels: numbered autosomes, then X/Y/MT,
    then remaining contigs with embedded numbers compared numerically.

    >>> sorted(["chr10", "chrX", "2", "scaffold_3"], key=chrom_sort_key)
    ['2', 'chr10', 'chrX', 'scaffold_3']
    """
    name = normalize_chr(label)
    if name.isdigit():
        return (0, int(name), ())
    if name.upper() in _SEX_CHROMS:
        return (1, _SEX_CHROMS[name.upper()], ())
    chunks = tuple(
        (0, int(part)) if part.isdigit() else (1, part.lower())
        for part in re.split(r"(\d+)", name)
        if part
    )
    return (2, 0, chunks)


def clean_ids(values: pd.Series) -> pd.Series:
    """Strip marker ids and turn placeholder tokens ('.', 'NA', ...) into NaN."""
    text = values.astype(str).str.strip()
    return text.where(~text.str.lower().isin(_MISSING_TOKENS))
