# -*- coding: utf-8 -*-
"""Rendering smoke tests for the Manhattan renderer and the overlap heatmap."""

import matplotlib.pyplot as plt
import pandas as pd
import pytest
from matplotlib.figure import Figure

from gwasmotion.bioplotkit import ManhattanPlot, compress_markers, overlap_heatmap
from gwasmotion.gtools import InvalidChromosome, order_categories
from gwasmotion.motion import FrameSequencer, pathway_states, scalar_states


@pytest.fixture
def plot(toy_markers, toy_registry):
    return ManhattanPlot(
        toy_markers,
        toy_registry,
        highlight_colors={"P1": "#d62728"},
        ylim=10.0,
        threshold=5.0,
        figsize=(4, 2),
        dpi=50,
    )


def test_manhattan_axes(plot, toy_registry):
    fig, ax = plot.new_axes()
    plot.manhattan(ax=ax, threshold=5.0, title="all")
    assert ax.get_xlim() == (0, toy_registry.total_length)
    assert ax.get_ylim() == (0, 10.0)
    assert [t.get_text() for t in ax.get_xticklabels()] == ["1", "2", "X"]
    assert ax.get_title() == "all"
    plt.close(fig)


def test_highlight_layer_drawn_on_top(plot, toy_markers, toy_registry):
    categories = pd.Series(["P1", "odd", "even", "even"], index=toy_markers["id"])
    fig, ax = plot.new_axes()
    plot.manhattan(categories=categories, ax=ax)
    assert len(ax.collections) == 2
    assert ax.collections[1].get_offsets().shape[0] == 1
    plt.close(fig)


def test_render_categorical_frames(plot, toy_markers, toy_registry):
    states = pathway_states(toy_markers, toy_registry, {"P1": {"a", "c"}, "P2": {"b"}})
    for frame in FrameSequencer(states, transitions=1, policy="categorical"):
        fig = plot.render(frame)
        assert isinstance(fig, Figure)
        assert fig.axes[0].get_title() == frame.label
        plt.close(fig)


def test_render_scalar_frames(plot, toy_markers):
    t0 = toy_markers[["id", "score"]]
    t1 = toy_markers[["id", "score"]].assign(score=lambda d: d["score"] + 1.0)
    frames = list(FrameSequencer(scalar_states([("t0", t0), ("t1", t1)]), transitions=2))
    fig = plot.render(frames[1])
    assert fig.axes[0].collections[0].get_offsets().shape[0] == 4
    plt.close(fig)


def test_unknown_chromosome_rejected(toy_markers, toy_registry):
    markers = toy_markers.copy()
    markers.loc[2, "chrom"] = "Y"
    with pytest.raises(InvalidChromosome):
        ManhattanPlot(markers, toy_registry)


def test_duplicate_ids_rejected(toy_markers, toy_registry):
    markers = pd.concat([toy_markers, toy_markers.iloc[[0]]], ignore_index=True)
    with pytest.raises(ValueError, match="unique"):
        ManhattanPlot(markers, toy_registry)


def test_compress_markers_small_table_unchanged(toy_markers):
    assert len(compress_markers(toy_markers)) == len(toy_markers)


def test_compress_markers_keeps_significant():
    n = 20_000
    df = pd.DataFrame({"id": [f"m{i}" for i in range(n)], "p": [0.9] * n})
    df.loc[7, "p"] = 1e-9
    out = compress_markers(df, target=1000)
    assert len(out) < n
    assert "m7" in set(out["id"])


def test_overlap_heatmap():
    order, mat = order_categories({"A": {"1", "2"}, "B": {"2", "3"}, "C": {"9"}})
    fig = plt.figure(figsize=(3, 3))
    ax = fig.add_subplot(111)
    overlap_heatmap(mat, ax, order=order, annotate=True)
    assert [t.get_text() for t in ax.get_yticklabels()] == order
    plt.close(fig)
