# -*- coding: utf-8 -*-
"""End-to-end runs of the gm subcommands on small tables."""

import logging
import sys

import pytest

from gwasmotion.script import animate, gwasmotion, heatmap, manhattan


@pytest.fixture(autouse=True)
def reset_root_logger():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)


@pytest.fixture
def inputs(tmp_path):
    lengths = tmp_path / "lengths.tsv"
    lengths.write_text("1\t1000\n2\t500\n", encoding="utf-8")
    header = "chrom\tpos\tid\tp\n"
    (tmp_path / "t40.tsv").write_text(
        header + "1\t100\tm1\t0.01\n1\t900\tm2\t0.5\n2\t50\tm3\t1e-6\n",
        encoding="utf-8",
    )
    (tmp_path / "t50.tsv").write_text(
        header + "1\t100\tm1\t1e-4\n2\t50\tm3\t0.2\n2\t400\tm4\t0.03\n",
        encoding="utf-8",
    )
    (tmp_path / "map.tsv").write_text(
        "id\tpathway\ttop\n"
        "m1\tGlycolysis\tMetabolism\n"
        "m2\tGlycolysis\tMetabolism\n"
        "m2\tTCA cycle\tMetabolism\n"
        "m3\tInsulin\tSignaling\n",
        encoding="utf-8",
    )
    return tmp_path


def run(module, monkeypatch, argv):
    monkeypatch.setattr(sys, "argv", ["gm"] + [str(a) for a in argv])
    module.main()


def test_heatmap_outputs(inputs, monkeypatch):
    out = inputs / "out"
    run(heatmap, monkeypatch, ["-pathway", inputs / "map.tsv", "-o", out, "-prefix", "run"])
    order = (out / "run.order.txt").read_text(encoding="utf-8").split("\n")[:-1]
    assert sorted(order) == ["Glycolysis", "Insulin", "TCA cycle"]
    assert (out / "run.overlap.tsv").is_file()
    assert (out / "run.overlap.png").is_file()
    assert (out / "run.heatmap.log").is_file()


def test_manhattan_highlight_outputs(inputs, monkeypatch):
    out = inputs / "plots"
    run(manhattan, monkeypatch, [
        "-gwasfile", inputs / "t40.tsv",
        "-pathway", inputs / "map.tsv",
        "-hl", "Glycolysis", "Insulin",
        "-assembly", inputs / "lengths.tsv",
        "-t", "1",
        "-o", out, "-prefix", "run",
    ])
    assert (out / "t40.manh.png").is_file()
    assert (out / "run.manhattan.log").is_file()


def test_manhattan_highlight_requires_pathway(inputs, monkeypatch):
    with pytest.raises(SystemExit) as exc:
        run(manhattan, monkeypatch, [
            "-gwasfile", inputs / "t40.tsv",
            "--highlight", "Glycolysis",
            "-assembly", inputs / "lengths.tsv",
            "-o", inputs / "plots",
        ])
    assert exc.value.code == 1


def test_animate_time_mode(inputs, monkeypatch):
    out = inputs / "anim"
    run(animate, monkeypatch, [
        "-mode", "time",
        "-gwasfile", inputs / "t40.tsv", inputs / "t50.tsv",
        "-labels", "40", "50",
        "-assembly", inputs / "lengths.tsv",
        "-transitions", "2",
        "-width", "2", "-dpi", "20",
        "-no-gif",
        "-o", out, "-prefix", "age",
    ])
    frames = sorted((out / "age.frames").glob("frame_*.png"))
    assert len(frames) == 4
    lines = (out / "age.frames.tsv").read_text(encoding="utf-8").splitlines()
    assert lines[0] == "frame\tdelay"
    assert [line.split("\t")[1] for line in lines[1:]] == ["100", "8", "8", "300"]


def test_animate_pathway_mode(inputs, monkeypatch):
    out = inputs / "anim"
    run(animate, monkeypatch, [
        "-mode", "pathway",
        "-gwasfile", inputs / "t40.tsv",
        "-pathway", inputs / "map.tsv",
        "-assembly", inputs / "lengths.tsv",
        "-transitions", "1",
        "-width", "2", "-dpi", "20",
        "-no-gif",
        "-o", out,
    ])
    # 3 pathways, 1 transition between each pair
    assert len(list((out / "gwasmotion.frames").glob("frame_*.png"))) == 5


def test_animate_pathway_mode_requires_mapping(inputs, monkeypatch):
    with pytest.raises(SystemExit) as exc:
        run(animate, monkeypatch, [
            "-mode", "pathway", "-gwasfile", inputs / "t40.tsv", "-o", inputs / "anim",
        ])
    assert exc.value.code == 1


def test_animate_rejects_unknown_chromosome(inputs, monkeypatch):
    (inputs / "bad.tsv").write_text("chrom\tpos\tid\tp\n7\t1\tm1\t0.1\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        run(animate, monkeypatch, [
            "-mode", "time",
            "-gwasfile", inputs / "t40.tsv", inputs / "bad.tsv",
            "-assembly", inputs / "lengths.tsv",
            "-no-gif", "-o", inputs / "anim",
        ])
    assert exc.value.code == 1


def test_dispatcher_unknown_module(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["gm", "nosuch"])
    with pytest.raises(SystemExit) as exc:
        gwasmotion.main()
    assert exc.value.code == 2
    assert "Unknown module: nosuch" in capsys.readouterr().out
