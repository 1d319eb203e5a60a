# -*- coding: utf-8 -*-
"""Shared fixtures: a three-chromosome registry and a small marker table."""

import matplotlib
matplotlib.use("Agg")
import pandas as pd
import pytest

from gwasmotion.gtools.registry import ChromRegistry


@pytest.fixture
def toy_registry():
    """chr1 (100 bp), chr2 (50 bp), chrX (30 bp)."""
    return ChromRegistry.from_pairs([("1", 100), ("2", 50), ("X", 30)])


@pytest.fixture
def toy_markers():
    return pd.DataFrame({
        "id": ["a", "b", "c", "d"],
        "chrom": ["1", "chr2", "X", "1"],
        "pos": [10, 20, 5, 90],
        "p": [1e-3, 0.5, 1e-8, 0.1],
        "score": [3.0, 0.30103, 8.0, 1.0],
    })
