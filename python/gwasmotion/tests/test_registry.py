# -*- coding: utf-8 -*-
"""Tests for ChromRegistry layout and coordinate validation."""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_array_equal

from gwasmotion.gtools.registry import (
    BUILTIN_ASSEMBLIES,
    ChromRegistry,
    CoordinateError,
    InvalidChromosome,
    InvalidPosition,
    builtin_assembly_name,
    normalize_chr,
)


# --- Layout ---

def test_starts_and_total(toy_registry):
    assert_array_equal(toy_registry.starts, [0, 100, 150])
    assert toy_registry.total_length == 180
    assert len(toy_registry) == 3


def test_midpoints(toy_registry):
    assert_array_equal(toy_registry.midpoints, [50, 125, 165])


def test_builtin_grch37():
    reg = ChromRegistry.builtin("GRCh37")
    assert len(reg) == 24
    assert reg.names[-2:] == ("X", "Y")
    assert reg.total_length == sum(BUILTIN_ASSEMBLIES["GRCh37"])
    assert reg.length("chr1") == 249250621


def test_builtin_aliases():
    assert ChromRegistry.builtin("hg19") == ChromRegistry.builtin("GRCh37")
    assert ChromRegistry.builtin("hg38") == ChromRegistry.builtin("GRCh38")


@pytest.mark.parametrize("name", ["grch38", "GRCH38", "hg38", "HG38", " GRCh38 "])
def test_builtin_names_ignore_case(name):
    assert builtin_assembly_name(name) == "GRCh38"
    assert ChromRegistry.builtin(name) == ChromRegistry.builtin("GRCh38")


def test_builtin_unknown():
    with pytest.raises(ValueError, match="Unknown assembly"):
        ChromRegistry.builtin("mm10")


# --- Construction errors ---

def test_empty_registry():
    with pytest.raises(ValueError):
        ChromRegistry((), ())


def test_size_mismatch():
    with pytest.raises(ValueError, match="differ in size"):
        ChromRegistry(("1", "2"), (10,))


def test_non_positive_length():
    with pytest.raises(ValueError, match="> 0"):
        ChromRegistry.from_pairs([("1", 10), ("2", 0)])


def test_duplicate_after_prefix_strip():
    with pytest.raises(ValueError, match="Duplicated"):
        ChromRegistry.from_pairs([("chr1", 10), ("1", 20)])


# --- Coordinates ---

def test_normalize_chr():
    assert normalize_chr("chr7") == "7"
    assert normalize_chr(" CHRX ") == "X"
    assert normalize_chr(3) == "3"


def test_coordinate(toy_registry):
    assert toy_registry.coordinate("1", 0) == 0
    assert toy_registry.coordinate("chr2", 10) == 110
    assert toy_registry.coordinate("X", 30) == 180


def test_coordinate_unknown_chromosome(toy_registry):
    with pytest.raises(InvalidChromosome):
        toy_registry.coordinate("3", 1)


@pytest.mark.parametrize("pos", [-1, 31])
def test_coordinate_out_of_range(toy_registry, pos):
    with pytest.raises(InvalidPosition):
        toy_registry.coordinate("X", pos)


def test_error_hierarchy():
    assert issubclass(InvalidChromosome, CoordinateError)
    assert issubclass(InvalidPosition, CoordinateError)
    assert issubclass(CoordinateError, ValueError)


def test_coordinates_vectorized(toy_registry):
    out = toy_registry.coordinates(pd.Series(["1", "2", "chrX"]), [5, 5, 5])
    assert_array_equal(out, [5, 105, 155])


def test_coordinates_preserve_monotonic_layout(toy_registry):
    chroms = ["1", "1", "2", "X"]
    out = toy_registry.coordinates(chroms, [0, 100, 0, 0])
    assert np.all(np.diff(out) >= 0)


def test_coordinates_unknown(toy_registry):
    with pytest.raises(InvalidChromosome, match="not in registry"):
        toy_registry.coordinates(["1", "MT"], [1, 1])


def test_coordinates_bad_position(toy_registry):
    with pytest.raises(InvalidPosition, match="out of range"):
        toy_registry.coordinates(["1", "2"], [1, 51])


@pytest.mark.parametrize("pos", [10.5, float("nan")])
def test_coordinate_non_integer_position(toy_registry, pos):
    with pytest.raises(InvalidPosition, match="not integers"):
        toy_registry.coordinate("1", pos)


def test_coordinates_reject_fractional_positions(toy_registry):
    with pytest.raises(InvalidPosition, match=r"1 position\(s\) are not integers; first: 100\.7"):
        toy_registry.coordinates(["1", "1"], [10.0, 100.7])
    assert_array_equal(toy_registry.coordinates(["1", "2"], [10.0, 5.0]), [10, 105])


def test_chrom_indices(toy_registry):
    assert_array_equal(toy_registry.chrom_indices(["X", "chr1", "2"]), [2, 0, 1])
    assert "chrX" in toy_registry
    assert "Y" not in toy_registry
