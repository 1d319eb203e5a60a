# -*- coding: utf-8 -*-
"""
gwasmotion: static Manhattan plots with pathway highlighting

Examples
--------
  # Basic usage with default column names (chrom, pos, id, p)
  -gwasfile result.assoc.tsv

  # Highlight two pathways (the later one wins for shared markers)
  -gwasfile result.assoc.tsv -pathway snp2pathway.tsv \
    -highlight "Insulin signaling" "Glycolysis"

  # Color every top-level pathway, GRCh38 coordinates, PDF output
  -gwasfile result.assoc.tsv -pathway snp2pathway.tsv -level top \
    -assembly GRCh38 --format pdf --out plots
  # Results will be saved as:
  #   plots/result.assoc.manh.pdf
"""

import argparse
import logging
import os
import socket
import time
import warnings

import matplotlib as mpl
mpl.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from joblib import Parallel, delayed

from gwasmotion.bioplotkit import ManhattanPlot, compress_markers
from gwasmotion.gtools import (
    CoordinateError,
    classify_markers,
    highlight_palette,
    order_categories,
    read_assoc,
    resolve_registry,
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


def _select_highlights(
    categories: dict[str, frozenset],
    names: list[str],
    logger: logging.Logger,
) -> list[str]:
    """Requested highlight names in the given order; all categories (clustered) if none."""
    if not names:
        order, _ = order_categories(categories)
        return order
    missing = [n for n in names if n not in categories]
    for n in missing:
        logger.warning(f"Highlight category not found in pathway table: {n}")
    return [n for n in names if n in categories]


def ManhattanFigure(file: str, args, logger: logging.Logger) -> str:
    """
    Plot one Manhattan figure for a single GWAS result file and return its path.
    """
    mpl.rcParams["pdf.fonttype"] = 42
    mpl.rcParams["ps.fonttype"] = 42
    mpl.rcParams["font.size"] = 6
    plt.rcParams["svg.fonttype"] = "none"
    plt.rcParams["axes.unicode_minus"] = False
    warnings.filterwarnings(
        "ignore",
        category=FutureWarning,
        message=".*ChainedAssignmentError.*",
    )

    t_plot = time.time()
    prefix = (
        os.path.basename(file)
        .replace(".tsv", "")
        .replace(".txt", "")
    )
    df = read_assoc(file, args.chr, args.pos, args.id, args.pvalue)
    if df.shape[0] == 0:
        raise ValueError(f"No markers with id and p-value found in {file}.")
    n_total = df.shape[0]
    if not args.fullscatter:
        df = compress_markers(df)
        if df.shape[0] < n_total:
            logger.info(f"{file}: compressed {n_total} markers to {df.shape[0]} for plotting.")

    threshold = args.threshold if args.threshold is not None else 0.05 / n_total
    labels = None
    palette: dict[str, str] = {}
    if args.pathway is not None:
        categories = load_categories(args, logger, universe=set(df["id"]))
        highlights = _select_highlights(categories, args.highlight or [], logger)
        if len(highlights) == 0:
            logger.warning("Nothing to highlight. Check the pathway table.")
        palette = highlight_palette(highlights, args.hl_cmap)
        labels = classify_markers(
            df, args.registry, [(n, categories[n]) for n in highlights]
        )
        labels.index = df["id"].astype(str)

    plotmodel = ManhattanPlot(
        df,
        args.registry,
        color_set=resolve_chrom_colors(args.pallete_spec, len(args.registry)),
        highlight_colors=palette,
        ylim=args.manh_ylim,
        figsize=(8.0, 8.0 / args.manh_ratio),
        dpi=300,
        scatter_size=args.scatter_size,
    )
    fig, ax = plotmodel.new_axes()
    plotmodel.manhattan(
        categories=labels,
        threshold=-np.log10(threshold),
        ax=ax,
    )
    if palette:
        handles = [
            plt.Line2D([], [], marker="o", linestyle="", color=c, label=n)
            for n, c in palette.items()
        ]
        ax.legend(handles=handles, loc="upper right", frameon=False, fontsize=5)
    ax.spines["right"].set_visible(False)
    ax.spines["top"].set_visible(False)
    manh_path = f"{args.out}/{prefix}.manh.{args.format}"
    fig.savefig(manh_path, transparent=True)
    plt.close(fig)
    logger.info(f"Manhattan plot saved to:\n  {manh_path}")
    logger.info(f"Visualization completed in {round(time.time() - t_plot, 2)} seconds.\n")
    return manh_path


def main():
    t_start = time.time()

    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    # ------------------------------------------------------------------
    # Required arguments
    # ------------------------------------------------------------------
    required_group = parser.add_argument_group("Required Arguments")
    required_group.add_argument(
        "-gwasfile", "--gwasfile", nargs="+", type=str, required=True,
        help="One or more GWAS result files (tab-delimited).",
    )

    # ------------------------------------------------------------------
    # Optional arguments
    # ------------------------------------------------------------------
    optional_group = parser.add_argument_group("Optional Arguments")
    add_assoc_arguments(optional_group)
    optional_group.add_argument(
        "-threshold", "--threshold", type=float, default=None,
        help="P-value threshold; if not set, use 0.05 / nSNP (default: %(default)s).",
    )
    pathway_group = parser.add_argument_group("Pathway Highlighting")
    add_pathway_arguments(pathway_group)
    pathway_group.add_argument(
        "-hl", "--highlight", nargs="+", type=str, default=None,
        help=(
            "Categories to highlight, in priority order (later wins). "
            "If omitted, all categories are drawn in clustering order."
        ),
    )
    pathway_group.add_argument(
        "-hl-cmap", "--hl-cmap", dest="hl_cmap", type=str, default="tab10",
        help="Colormap for highlighted categories (default: %(default)s).",
    )
    optional_group.add_argument(
        "-manh", "--manh", type=str, default="2",
        help="Manhattan aspect ratio (width/height), e.g. 2 or 5/2 (default: %(default)s).",
    )
    optional_group.add_argument(
        "-manh-ylim", "--manh-ylim", type=float, default=None,
        help="Upper limit of Manhattan y-axis (default: auto).",
    )
    optional_group.add_argument(
        "-pallete", "--pallete", type=str, default=None,
        help=(
            "Chromosome color palette: a cmap name (e.g. tab10) or ';'-separated "
            "colors (e.g. #1f77b4;#ff7f0e). If omitted, use default black/grey."
        ),
    )
    optional_group.add_argument(
        "-scatter-size", "--scatter-size", type=float, default=8.0,
        help="Scatter marker size (default: %(default)s).",
    )
    optional_group.add_argument(
        "-fullscatter", "--fullscatter", action="store_true", default=False,
        help="Disable down-sampling and draw all points.",
    )
    add_output_arguments(optional_group, threads=-1)

    args = parser.parse_args()

    args.out = args.out if args.out not in (None, "") else "."
    os.makedirs(args.out, mode=0o755, exist_ok=True)

    log_path = f"{args.out}/{args.prefix}.manhattan.log".replace("//", "/")
    logger = setup_logging(log_path, verbose=args.verbose)

    # ------------------------------------------------------------------
    # Basic checks and configuration
    # ------------------------------------------------------------------
    if args.scatter_size <= 0:
        logger.error("scatter-size must be > 0.")
        raise SystemExit(1)
    if args.manh_ylim is not None and args.manh_ylim <= 0:
        logger.error("manh-ylim must be > 0.")
        raise SystemExit(1)
    if args.threshold is not None and not (0 < args.threshold <= 1):
        logger.error("threshold must be in (0, 1].")
        raise SystemExit(1)
    if args.highlight and args.pathway is None:
        logger.error("--highlight requires --pathway.")
        raise SystemExit(1)
    try:
        args.pallete_spec = parse_pallete_spec(args.pallete)
        args.manh_ratio = parse_ratio(args.manh, "Manhattan")
    except ValueError as e:
        logger.error(str(e))
        raise SystemExit(1)

    emit_cli_configuration(
        logger,
        app_title="gwasmotion - Manhattan plot",
        config_title="MANHATTAN CONFIG",
        host=socket.gethostname(),
        sections=[
            (
                "General",
                [
                    ("Input files", ", ".join(args.gwasfile)),
                    ("Columns", f"{args.chr}/{args.pos}/{args.id}/{args.pvalue}"),
                    ("Assembly", args.assembly),
                    ("Threshold", args.threshold if args.threshold is not None else "0.05 / nSNP"),
                ],
            ),
            (
                "Pathway",
                [
                    ("Mapping file", args.pathway),
                    ("Level", args.level),
                    ("Highlight", ", ".join(args.highlight) if args.highlight else "all (clustered)"),
                ] if args.pathway else [],
            ),
            (
                "Visualization",
                [
                    ("Pallete", args.pallete or "default (black/grey)"),
                    ("Scatter size", args.scatter_size),
                    ("Compression", "off" if args.fullscatter else "on"),
                    ("Aspect ratio", args.manh_ratio),
                    ("Format", args.format),
                ],
            ),
        ],
        footer_rows=[
            ("Output prefix", f"{args.out}/{args.prefix}"),
            ("Threads", f"{args.thread} ({'All cores' if args.thread == -1 else 'User-specified'})"),
        ],
    )

    checks: list[bool] = [ensure_file_exists(logger, f, "GWAS result file") for f in args.gwasfile]
    checks.append(ensure_assembly(logger, args.assembly))
    if args.pathway:
        checks.append(ensure_file_exists(logger, args.pathway, "Pathway mapping file"))
    if not ensure_all_true(checks):
        raise SystemExit(1)
    try:
        args.registry = resolve_registry(args.assembly)
    except ValueError as e:
        logger.error(str(e))
        raise SystemExit(1)

    # ------------------------------------------------------------------
    # Parallel processing of all input files
    # ------------------------------------------------------------------
    try:
        Parallel(n_jobs=args.thread, backend="loky")(
            delayed(ManhattanFigure)(file, args, logger) for file in args.gwasfile
        )
    except CoordinateError as e:
        logger.error(f"{e} Check that --assembly matches the GWAS coordinates.")
        raise SystemExit(1)

    lt = time.localtime()
    endinfo = (
        f"\nFinished Manhattan plotting. Total wall time: "
        f"{round(time.time() - t_start, 2)} seconds\n"
        f"{lt.tm_year}-{lt.tm_mon}-{lt.tm_mday} "
        f"{lt.tm_hour}:{lt.tm_min}:{lt.tm_sec}"
    )
    logger.info(endinfo)


if __name__ == "__main__":
    main()
