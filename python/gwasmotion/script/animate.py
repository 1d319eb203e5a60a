# -*- coding: utf-8 -*-
"""
gwasmotion: animated Manhattan plots

Two modes:
  pathway  One GWAS file. Each pathway (in clustering order) becomes one
           state; its markers fade in and out between states.
  time     One GWAS file per time point. Scores of shared markers are
           eased from one time point to the next.

Examples
--------
  -mode pathway -gwasfile result.assoc.tsv -pathway snp2pathway.tsv -level top
  -mode time -gwasfile age40.tsv age50.tsv age60.tsv -labels 40 50 60 \
    -transitions 12 -easing tanh --out anim
  # Results will be saved as:
  #   anim/<prefix>.frames/frame_00000.png ...
  #   anim/<prefix>.frames.tsv   (frame, delay)
  #   anim/<prefix>.gif

Frames are written one at a time. Ctrl-C stops after the current frame;
frames already written stay on disk.
"""

import argparse
import os
import signal
import socket
import threading
import time

import matplotlib as mpl
mpl.use("Agg")
import numpy as np
import pandas as pd

from gwasmotion.bioplotkit import ManhattanPlot
from gwasmotion.gtools import (
    CoordinateError,
    highlight_palette,
    order_categories,
    read_assoc,
    resolve_registry,
)
from gwasmotion.gtools.overlap import LINKAGE_METHODS
from gwasmotion.motion import (
    ExportSettings,
    FrameSequencer,
    GifAssemblyError,
    assemble_gif,
    export_frames,
    pathway_states,
    scalar_states,
)
from ._common.config_render import emit_cli_configuration
from ._common.inputs import (
    add_assoc_arguments,
    add_output_arguments,
    add_pathway_arguments,
    load_categories,
)
from ._common.log import setup_logging
from ._common.palette import parse_pallete_spec, parse_ratio, resolve_chrom_colors
from ._common.pathcheck import ensure_all_true, ensure_assembly, ensure_file_exists
from ._common.status import CliStatus


def _file_label(path: str) -> str:
    return os.path.basename(path).replace(".tsv", "").replace(".txt", "")


def _build_pathway_run(args, logger):
    df = read_assoc(args.gwasfile[0], args.chr, args.pos, args.id, args.pvalue)
    categories = load_categories(args, logger, universe=set(df["id"]))
    if len(categories) == 0:
        raise ValueError("No pathway categories overlap the GWAS markers.")
    if args.max_categories is not None and len(categories) > args.max_categories:
        largest = sorted(categories, key=lambda k: (-len(categories[k]), k))[: args.max_categories]
        categories = {k: categories[k] for k in categories if k in set(largest)}
        logger.info(f"Kept the {len(categories)} largest categories.")
    with CliStatus("Clustering categories...") as task:
        order, _ = order_categories(categories, method=args.method)
        task.complete(f"Clustering {len(order)} categories ...Finished")
    logger.info(f"State order: {', '.join(order)}")
    states = pathway_states(df, args.registry, categories, order, cumulative=args.cumulative)
    palette = highlight_palette(order, args.hl_cmap)
    return df, states, palette, "categorical", df.shape[0]


def _build_time_run(args, logger):
    labels = args.labels or [_file_label(f) for f in args.gwasfile]
    if len(labels) != len(args.gwasfile):
        raise ValueError(
            f"-labels has {len(labels)} entries for {len(args.gwasfile)} GWAS files."
        )
    tables = []
    for label, path in zip(labels, args.gwasfile):
        df = read_assoc(path, args.chr, args.pos, args.id, args.pvalue)
        logger.info(f"State '{label}': {df.shape[0]} markers from {path}")
        tables.append((label, df))
    markers = (
        pd.concat([df[["id", "chrom", "pos", "score"]] for _, df in tables], ignore_index=True)
        .drop_duplicates(subset="id", keep="first")
        .reset_index(drop=True)
    )
    n_max = max(df.shape[0] for _, df in tables)
    return markers, scalar_states(tables), {}, "scalar", n_max


def main():
    t_start = time.time()
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    required_group = parser.add_argument_group("Required Arguments")
    required_group.add_argument(
        "-mode", "--mode", type=str, choices=["pathway", "time"], required=True,
        help="Animate pathways (categorical) or time points (scalar).",
    )
    required_group.add_argument(
        "-gwasfile", "--gwasfile", nargs="+", type=str, required=True,
        help="GWAS result file(s); one per time point in time mode.",
    )

    optional_group = parser.add_argument_group("Optional Arguments")
    add_assoc_arguments(optional_group)
    optional_group.add_argument(
        "-labels", "--labels", nargs="+", type=str, default=None,
        help="State labels for time mode (default: file names).",
    )
    optional_group.add_argument(
        "-threshold", "--threshold", type=float, default=None,
        help="P-value threshold; if not set, use 0.05 / nSNP (default: %(default)s).",
    )

    pathway_group = parser.add_argument_group("Pathway Mode")
    add_pathway_arguments(pathway_group)
    pathway_group.add_argument(
        "-method", "--method", type=str, choices=list(LINKAGE_METHODS), default="average",
        help="Linkage method for the state order (default: %(default)s).",
    )
    pathway_group.add_argument(
        "-max-categories", "--max-categories", dest="max_categories", type=int, default=None,
        help="Keep only the N largest categories (default: all).",
    )
    pathway_group.add_argument(
        "-cumulative", "--cumulative", action="store_true", default=False,
        help="Keep earlier pathways highlighted; later pathways win shared markers.",
    )
    pathway_group.add_argument(
        "-hl-cmap", "--hl-cmap", dest="hl_cmap", type=str, default="tab20",
        help="Colormap for pathway colors (default: %(default)s).",
    )

    anim_group = parser.add_argument_group("Animation")
    anim_group.add_argument(
        "-transitions", "--transitions", type=int, default=10,
        help="Transition frames between consecutive states (default: %(default)s).",
    )
    anim_group.add_argument(
        "-easing", "--easing", type=str, choices=["tanh", "linear"], default="tanh",
        help="Easing of scalar transitions (default: %(default)s).",
    )
    anim_group.add_argument(
        "-hold", "--hold", type=int, default=100,
        help="Delay of genuine frames in 1/100 s (default: %(default)s).",
    )
    anim_group.add_argument(
        "-trans-delay", "--trans-delay", dest="trans_delay", type=int, default=8,
        help="Delay of transition frames in 1/100 s (default: %(default)s).",
    )
    anim_group.add_argument(
        "-end-delay", "--end-delay", dest="end_delay", type=int, default=300,
        help="Delay of the last frame in 1/100 s (default: %(default)s).",
    )
    anim_group.add_argument(
        "-loop", "--loop", type=int, default=0,
        help="GIF loop count, 0 loops forever (default: %(default)s).",
    )
    anim_group.add_argument(
        "-width", "--width", type=float, default=10.0,
        help="Frame width in inches (default: %(default)s).",
    )
    anim_group.add_argument(
        "-manh", "--manh", type=str, default="5/2",
        help="Frame aspect ratio (width/height) (default: %(default)s).",
    )
    anim_group.add_argument(
        "-dpi", "--dpi", type=int, default=100,
        help="Frame resolution (default: %(default)s).",
    )
    anim_group.add_argument(
        "-manh-ylim", "--manh-ylim", type=float, default=None,
        help="Fixed y-axis upper limit (default: 1.1 x max score over all states).",
    )
    anim_group.add_argument(
        "-pallete", "--pallete", type=str, default=None,
        help="Chromosome color palette (cmap name or ';'-separated colors).",
    )
    anim_group.add_argument(
        "-scatter-size", "--scatter-size", type=float, default=6.0,
        help="Scatter marker size (default: %(default)s).",
    )
    anim_group.add_argument(
        "-no-gif", "--no-gif", dest="no_gif", action="store_true", default=False,
        help="Only write frames and the frame manifest.",
    )
    anim_group.add_argument(
        "-gif-program", "--gif-program", dest="gif_program", type=str, default=None,
        help="ImageMagick executable (default: magick, then convert).",
    )
    add_output_arguments(optional_group, figure_format=False, threads=1)
    args = parser.parse_args()

    args.out = args.out if args.out not in (None, "") else "."
    os.makedirs(args.out, mode=0o755, exist_ok=True)
    outprefix = f"{args.out}/{args.prefix}".replace("//", "/")
    logger = setup_logging(f"{outprefix}.animate.log", verbose=args.verbose)

    # ------------------------------------------------------------------
    # Basic checks and configuration
    # ------------------------------------------------------------------
    if args.mode == "pathway" and args.pathway is None:
        logger.error("-mode pathway requires --pathway.")
        raise SystemExit(1)
    if args.mode == "pathway" and len(args.gwasfile) != 1:
        logger.error("-mode pathway takes exactly one GWAS file.")
        raise SystemExit(1)
    if args.mode == "time" and len(args.gwasfile) < 2:
        logger.warning("Only one time point given; the animation has a single frame.")
    if args.transitions < 0:
        logger.error("transitions must be >= 0.")
        raise SystemExit(1)
    if args.thread == 0:
        logger.error("thread must not be 0.")
        raise SystemExit(1)
    if args.threshold is not None and not (0 < args.threshold <= 1):
        logger.error("threshold must be in (0, 1].")
        raise SystemExit(1)
    try:
        args.pallete_spec = parse_pallete_spec(args.pallete)
        args.manh_ratio = parse_ratio(args.manh, "Frame")
        settings = ExportSettings(
            outdir=f"{outprefix}.frames",
            dpi=args.dpi,
            hold_delay=args.hold,
            transition_delay=args.trans_delay,
            end_delay=args.end_delay,
            loop=args.loop,
            n_jobs=args.thread,
        )
    except ValueError as e:
        logger.error(str(e))
        raise SystemExit(1)

    emit_cli_configuration(
        logger,
        app_title="gwasmotion - Animated Manhattan plot",
        config_title="ANIMATION CONFIG",
        host=socket.gethostname(),
        sections=[
            (
                "General",
                [
                    ("Mode", args.mode),
                    ("Input files", ", ".join(args.gwasfile)),
                    ("Assembly", args.assembly),
                    ("Threshold", args.threshold if args.threshold is not None else "0.05 / nSNP"),
                ],
            ),
            (
                "Pathway",
                [
                    ("Mapping file", args.pathway),
                    ("Level", args.level),
                    ("Linkage", args.method),
                    ("Cumulative", args.cumulative),
                ] if args.mode == "pathway" else [],
            ),
            (
                "Animation",
                [
                    ("Transitions", args.transitions),
                    ("Easing", args.easing if args.mode == "time" else "opacity ramp"),
                    ("Delays (1/100 s)", f"hold={args.hold} trans={args.trans_delay} end={args.end_delay}"),
                    ("Loop", args.loop),
                    ("Frame size", f"{args.width:g} in, ratio {args.manh_ratio:g}, {args.dpi} dpi"),
                ],
            ),
        ],
        footer_rows=[
            ("Frames", settings.outdir),
            ("GIF", "off" if args.no_gif else f"{outprefix}.gif"),
            ("Threads", args.thread),
        ],
    )

    checks: list[bool] = [ensure_file_exists(logger, f, "GWAS result file") for f in args.gwasfile]
    checks.append(ensure_assembly(logger, args.assembly))
    if args.pathway and args.mode == "pathway":
        checks.append(ensure_file_exists(logger, args.pathway, "Pathway mapping file"))
    if not ensure_all_true(checks):
        raise SystemExit(1)

    # ------------------------------------------------------------------
    # States and renderer
    # ------------------------------------------------------------------
    try:
        args.registry = resolve_registry(args.assembly)
        build = _build_pathway_run if args.mode == "pathway" else _build_time_run
        markers, states, palette, policy, n_snp = build(args, logger)
        sequencer = FrameSequencer(
            states,
            transitions=args.transitions,
            policy=policy,
            easing=args.easing,
        )
        if policy == "scalar":
            ymax = max(float(s.values.max()) for s in states if len(s.values) > 0)
        else:
            ymax = float(markers["score"].max())
        threshold = args.threshold if args.threshold is not None else 0.05 / n_snp
        renderer = ManhattanPlot(
            markers,
            args.registry,
            color_set=resolve_chrom_colors(args.pallete_spec, len(args.registry)),
            highlight_colors=palette,
            ylim=args.manh_ylim if args.manh_ylim is not None else 1.1 * max(ymax, -np.log10(threshold)),
            threshold=-np.log10(threshold),
            figsize=(args.width, args.width / args.manh_ratio),
            dpi=args.dpi,
            scatter_size=args.scatter_size,
        )
    except CoordinateError as e:
        logger.error(f"{e} Check that --assembly matches the GWAS coordinates.")
        raise SystemExit(1)
    except ValueError as e:
        logger.error(str(e))
        raise SystemExit(1)
    logger.info(
        f"{len(states)} states x {args.transitions} transitions -> {len(sequencer)} frames."
    )

    # ------------------------------------------------------------------
    # Frame export (Ctrl-C stops after the current frame)
    # ------------------------------------------------------------------
    stop = threading.Event()

    def _on_sigint(signum, frame):
        if stop.is_set():
            raise KeyboardInterrupt
        logger.warning("Interrupt received; stopping after the current frame (Ctrl-C again to abort).")
        stop.set()

    t_export = time.time()
    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        manifest = export_frames(sequencer, renderer.render, settings, stop=stop, progress=True)
    finally:
        signal.signal(signal.SIGINT, previous)
    manifest_path = manifest.write_tsv(f"{outprefix}.frames.tsv")
    logger.info(
        f"{len(manifest)} frames written to {settings.outdir} in "
        f"{round(time.time() - t_export, 2)} seconds; manifest: {manifest_path}"
    )
    if not manifest.complete:
        logger.warning("Export was interrupted; GIF assembly skipped.")
        raise SystemExit(130)

    if not args.no_gif:
        try:
            gif = assemble_gif(manifest, f"{outprefix}.gif", loop=args.loop, program=args.gif_program)
        except GifAssemblyError as e:
            logger.error(f"{e} Frames are kept in {settings.outdir}.")
            raise SystemExit(1)
        logger.info(f"Animation saved to:\n  {gif}")

    logger.info(f"\nFinished in {round(time.time() - t_start, 2)} seconds.")


if __name__ == "__main__":
    main()
