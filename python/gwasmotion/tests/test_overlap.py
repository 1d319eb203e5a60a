# -*- coding: utf-8 -*-
"""Tests for Jaccard overlap and clustering order."""

import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal

from gwasmotion.gtools.overlap import (
    category_order,
    distance_matrix,
    jaccard,
    order_categories,
    overlap_matrix,
)
from gwasmotion.gtools.registry import ChromRegistry


@pytest.fixture
def two_groups():
    """A/C share most markers, B/D share most markers, the groups are disjoint."""
    return {
        "A": {"1", "2", "3"},
        "B": {"7", "8"},
        "C": {"1", "2", "3", "4"},
        "D": {"7", "8", "9"},
    }


def test_jaccard():
    assert jaccard(frozenset("ab"), frozenset("bc")) == pytest.approx(1 / 3)
    assert jaccard(frozenset(), frozenset()) == 0.0
    assert jaccard(frozenset("a"), frozenset()) == 0.0


def test_overlap_matrix(two_groups):
    mat = overlap_matrix(two_groups)
    assert list(mat.index) == ["A", "B", "C", "D"]
    assert_array_almost_equal(np.diag(mat.to_numpy()), [1, 1, 1, 1])
    assert mat.loc["A", "C"] == pytest.approx(0.75)
    assert mat.loc["C", "A"] == pytest.approx(0.75)
    assert mat.loc["A", "B"] == 0.0


def test_distance_matrix(two_groups):
    dist = distance_matrix(overlap_matrix(two_groups))
    assert_array_almost_equal(np.diag(dist.to_numpy()), [0, 0, 0, 0])
    assert dist.loc["B", "D"] == pytest.approx(1 - 2 / 3)


def test_order_groups_similar_categories(two_groups):
    order, mat = order_categories(two_groups)
    assert sorted(order) == ["A", "B", "C", "D"]
    assert abs(order.index("A") - order.index("C")) == 1
    assert abs(order.index("B") - order.index("D")) == 1
    assert list(mat.index) == order
    assert list(mat.columns) == order


def test_complete_linkage(two_groups):
    order = category_order(overlap_matrix(two_groups), method="complete")
    assert abs(order.index("A") - order.index("C")) == 1


def test_unknown_linkage(two_groups):
    with pytest.raises(ValueError, match="linkage"):
        category_order(overlap_matrix(two_groups), method="ward")


def test_single_category():
    order, mat = order_categories({"only": {"x"}})
    assert order == ["only"]
    assert mat.shape == (1, 1)


def test_empty_categories_do_not_break_clustering():
    order, _ = order_categories({"A": set(), "B": set(), "C": {"x"}})
    assert sorted(order) == ["A", "B", "C"]


def test_two_chromosome_example():
    reg = ChromRegistry.from_pairs([("1", 100), ("2", 50)])
    assert reg.coordinate("1", 40) == 40
    assert reg.coordinate("2", 10) == 110
    mat = overlap_matrix({"A": {"m1"}, "B": {"m1", "m2"}})
    assert mat.loc["A", "B"] == pytest.approx(0.5)
    assert distance_matrix(mat).loc["A", "B"] == pytest.approx(0.5)
