# -*- coding: utf-8 -*-
"""Tests for frame export, the frame manifest and GIF command assembly."""

import os
import signal
import threading
from pathlib import Path

import matplotlib.pyplot as plt
import pandas as pd
import pytest

import gwasmotion.motion.export as export_module
from gwasmotion.motion.export import (
    ExportSettings,
    FrameManifest,
    GifAssemblyError,
    assemble_gif,
    export_frames,
    find_gif_program,
    gif_command,
    _save_frame_in_worker,
)
from gwasmotion.motion.sequencer import FrameSequencer, State


def tiny_render(frame):
    fig = plt.figure(figsize=(1, 1), dpi=20)
    ax = fig.add_subplot(111)
    ax.scatter(range(len(frame.values)), frame.values.to_numpy())
    ax.set_title(frame.label)
    return fig


@pytest.fixture
def sequencer():
    states = [
        State("t0", pd.Series({"a": 1.0, "b": 2.0})),
        State("t1", pd.Series({"a": 3.0, "b": 0.5})),
    ]
    return FrameSequencer(states, transitions=2)


@pytest.fixture
def settings(tmp_path):
    return ExportSettings(outdir=tmp_path / "frames", dpi=20)


# --- Settings ---

def test_default_delays():
    s = ExportSettings()
    assert (s.hold_delay, s.transition_delay, s.end_delay, s.loop) == (100, 8, 300, 0)


@pytest.mark.parametrize(
    "kwargs",
    [{"hold_delay": -1}, {"transition_delay": -5}, {"end_delay": -1}, {"loop": -1}, {"n_jobs": 0}],
)
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        ExportSettings(**kwargs)


def test_frame_path(tmp_path):
    s = ExportSettings(outdir=tmp_path)
    assert s.frame_path(7) == tmp_path / "frame_00007.png"


# --- Export ---

def test_export_writes_every_frame(sequencer, settings):
    n_open = len(plt.get_fignums())
    manifest = export_frames(sequencer, tiny_render, settings)
    assert manifest.complete
    assert len(manifest) == 4
    for img, _ in manifest.entries:
        assert img.is_file()
        assert img.stat().st_size > 0
    assert [d for _, d in manifest.entries] == [100, 8, 8, 300]
    assert [img.name for img, _ in manifest.entries] == [
        "frame_00000.png", "frame_00001.png", "frame_00002.png", "frame_00003.png",
    ]
    assert len(plt.get_fignums()) == n_open


def test_export_without_len_uses_end_delay_for_last(sequencer, settings):
    manifest = export_frames(iter(sequencer), tiny_render, settings)
    assert manifest.complete
    assert [d for _, d in manifest.entries] == [100, 8, 8, 300]


def test_export_stops_after_current_frame(sequencer, settings):
    stop = threading.Event()
    stop.set()
    manifest = export_frames(sequencer, tiny_render, settings, stop=stop)
    assert not manifest.complete
    assert len(manifest) == 1
    assert sorted(p.name for p in Path(settings.outdir).iterdir()) == ["frame_00000.png"]


def test_render_error_propagates(sequencer, settings):
    def broken(frame):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        export_frames(sequencer, broken, settings)


# --- Parallel export ---

@pytest.fixture
def three_states():
    states = [
        State("t0", pd.Series({"a": 1.0, "b": 2.0})),
        State("t1", pd.Series({"a": 3.0, "b": 0.5})),
        State("t2", pd.Series({"a": 0.2, "b": 4.0})),
    ]
    return FrameSequencer(states, transitions=2)


def test_parallel_export_keeps_order(three_states, tmp_path):
    settings = ExportSettings(outdir=tmp_path / "frames", dpi=20, n_jobs=2)
    manifest = export_frames(three_states, tiny_render, settings)
    assert manifest.complete
    assert [img.name for img, _ in manifest.entries] == [
        f"frame_{i:05d}.png" for i in range(7)
    ]
    assert [d for _, d in manifest.entries] == [100, 8, 8, 100, 8, 8, 300]
    assert all(img.is_file() for img, _ in manifest.entries)


def test_parallel_export_stops_after_one_batch(three_states, tmp_path):
    settings = ExportSettings(outdir=tmp_path / "frames", dpi=20, n_jobs=2)
    stop = threading.Event()
    stop.set()
    manifest = export_frames(three_states, tiny_render, settings, stop=stop)
    assert not manifest.complete
    assert len(manifest) == 2
    assert sorted(p.name for p in Path(settings.outdir).iterdir()) == [
        "frame_00000.png", "frame_00001.png",
    ]


class InterruptedParallel:
    """Runs batches in-process and raises KeyboardInterrupt on the second one."""

    def __init__(self, *args, **kwargs):
        self.calls = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def __call__(self, tasks):
        self.calls += 1
        if self.calls == 2:
            raise KeyboardInterrupt
        return [func(*a, **kw) for func, a, kw in tasks]


def test_parallel_interrupt_returns_finished_batches(three_states, tmp_path, monkeypatch):
    monkeypatch.setattr(export_module, "Parallel", InterruptedParallel)
    settings = ExportSettings(outdir=tmp_path / "frames", dpi=20, n_jobs=2)
    manifest = export_frames(three_states, tiny_render, settings)
    assert not manifest.complete
    assert [img.name for img, _ in manifest.entries] == ["frame_00000.png", "frame_00001.png"]


def test_worker_ignores_sigint(sequencer, settings):
    Path(settings.outdir).mkdir(parents=True)
    frame = next(iter(sequencer))
    previous = signal.getsignal(signal.SIGINT)
    try:
        _save_frame_in_worker(frame, tiny_render, settings, os.getpid())
        assert signal.getsignal(signal.SIGINT) == previous
        path = _save_frame_in_worker(frame, tiny_render, settings, os.getpid() + 1)
        assert signal.getsignal(signal.SIGINT) == signal.SIG_IGN
        assert path.is_file()
    finally:
        signal.signal(signal.SIGINT, previous)


class RecordingBar:
    closed = 0

    def __init__(self, iterable, total=None, desc="", description=""):
        self.iterable = iterable

    def __iter__(self):
        return iter(self.iterable)

    def close(self):
        RecordingBar.closed += 1


@pytest.mark.parametrize("n_jobs", [1, 2])
def test_progress_closed_on_stop(sequencer, tmp_path, monkeypatch, n_jobs):
    monkeypatch.setattr(export_module, "tqdm", RecordingBar)
    monkeypatch.setattr(export_module, "rich_track", RecordingBar)
    monkeypatch.setattr(RecordingBar, "closed", 0)
    settings = ExportSettings(outdir=tmp_path / "frames", dpi=20, n_jobs=n_jobs)
    stop = threading.Event()
    stop.set()
    manifest = export_frames(sequencer, tiny_render, settings, stop=stop, progress=True)
    assert not manifest.complete
    assert RecordingBar.closed == 1


# --- Manifest ---

def test_manifest_tsv(tmp_path):
    manifest = FrameManifest()
    manifest.append(tmp_path / "f0.png", 100)
    manifest.append(tmp_path / "f1.png", 300)
    out = manifest.write_tsv(tmp_path / "frames.tsv")
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "frame\tdelay"
    assert lines[1] == f"{tmp_path / 'f0.png'}\t100"
    assert lines[2].endswith("\t300")


# --- GIF assembly ---

def test_gif_command_order():
    manifest = FrameManifest()
    manifest.append("f0.png", 100)
    manifest.append("f1.png", 8)
    manifest.append("f2.png", 300)
    cmd = gif_command("magick", manifest, "out.gif", loop=2)
    assert cmd == [
        "magick", "-loop", "2",
        "-delay", "100", "f0.png",
        "-delay", "8", "f1.png",
        "-delay", "300", "f2.png",
        "out.gif",
    ]


def test_missing_gif_program():
    with pytest.raises(GifAssemblyError, match="not found"):
        find_gif_program("gwasmotion-no-such-program")


def test_assemble_empty_manifest(tmp_path):
    with pytest.raises(GifAssemblyError, match="No frames"):
        assemble_gif(FrameManifest(), tmp_path / "out.gif")


def test_assemble_missing_program_keeps_frames(sequencer, settings, tmp_path):
    manifest = export_frames(sequencer, tiny_render, settings)
    with pytest.raises(GifAssemblyError):
        assemble_gif(manifest, tmp_path / "out.gif", program="gwasmotion-no-such-program")
    assert all(img.is_file() for img, _ in manifest.entries)
    assert not (tmp_path / "out.gif").exists()
