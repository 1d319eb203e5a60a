# -*- coding: utf-8 -*-
"""
gwasmotion: pathway overlap heatmap

Computes the pairwise Jaccard overlap between the marker sets of all
pathways, orders pathways by hierarchical clustering of 1 - overlap, and
draws the ordered matrix.

Examples
--------
  -pathway snp2pathway.tsv
  -pathway snp2pathway.tsv -level top -method complete --annotate
  # Restrict pathways to markers of one association table
  -pathway snp2pathway.tsv -gwasfile result.assoc.tsv -min-size 5
  # Results will be saved as:
  #   <out>/<prefix>.overlap.png
  #   <out>/<prefix>.overlap.tsv   (ordered matrix)
  #   <out>/<prefix>.order.txt     (clustering order)
"""

import argparse
import os
import socket
import time

import matplotlib as mpl
mpl.use("Agg")
import matplotlib.pyplot as plt

from gwasmotion.bioplotkit import overlap_heatmap
from gwasmotion.gtools import order_categories, read_assoc
from gwasmotion.gtools.overlap import LINKAGE_METHODS
from ._common.config_render import emit_cli_configuration
from ._common.inputs import add_output_arguments, add_pathway_arguments, load_categories
from ._common.log import setup_logging
from ._common.pathcheck import ensure_all_true, ensure_file_exists
from ._common.status import CliStatus


def main():
    t_start = time.time()
    parser = argparse.ArgumentParser(
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    required_group = parser.add_argument_group("Required Arguments")
    add_pathway_arguments(required_group, required=True)

    optional_group = parser.add_argument_group("Optional Arguments")
    optional_group.add_argument(
        "-gwasfile", "--gwasfile", type=str, default=None,
        help="Optional GWAS result file; only its markers are counted.",
    )
    optional_group.add_argument(
        "-id", "--id", type=str, default="id",
        help="Marker id column of the GWAS file (default: %(default)s).",
    )
    optional_group.add_argument(
        "-pvalue", "--pvalue", type=str, default="p",
        help="P-value column of the GWAS file (default: %(default)s).",
    )
    optional_group.add_argument(
        "-chr", "--chr", type=str, default="chrom",
        help="Chromosome column of the GWAS file (default: %(default)s).",
    )
    optional_group.add_argument(
        "-pos", "--pos", type=str, default="pos",
        help="Position column of the GWAS file (default: %(default)s).",
    )
    optional_group.add_argument(
        "-method", "--method", type=str, choices=list(LINKAGE_METHODS), default="average",
        help="Linkage method for ordering (default: %(default)s).",
    )
    optional_group.add_argument(
        "-cmap", "--cmap", type=str, default="Greys",
        help="Heatmap colormap (default: %(default)s).",
    )
    optional_group.add_argument(
        "-annotate", "--annotate", action="store_true", default=False,
        help="Write overlap values into the cells.",
    )
    add_output_arguments(optional_group)
    args = parser.parse_args()

    args.out = args.out if args.out not in (None, "") else "."
    os.makedirs(args.out, mode=0o755, exist_ok=True)
    outprefix = f"{args.out}/{args.prefix}".replace("//", "/")
    logger = setup_logging(f"{outprefix}.heatmap.log", verbose=args.verbose)

    emit_cli_configuration(
        logger,
        app_title="gwasmotion - Pathway overlap heatmap",
        config_title="HEATMAP CONFIG",
        host=socket.gethostname(),
        sections=[
            (
                "General",
                [
                    ("Mapping file", args.pathway),
                    ("Level", args.level),
                    ("Min size", args.min_size),
                    ("GWAS file", args.gwasfile),
                    ("Linkage", args.method),
                    ("Colormap", args.cmap),
                    ("Format", args.format),
                ],
            )
        ],
        footer_rows=[("Output prefix", outprefix)],
    )

    checks = [ensure_file_exists(logger, args.pathway, "Pathway mapping file")]
    if args.gwasfile:
        checks.append(ensure_file_exists(logger, args.gwasfile, "GWAS result file"))
    if not ensure_all_true(checks):
        raise SystemExit(1)

    universe = None
    if args.gwasfile:
        df = read_assoc(args.gwasfile, args.chr, args.pos, args.id, args.pvalue)
        universe = set(df["id"])
    categories = load_categories(args, logger, universe=universe)
    if len(categories) == 0:
        logger.error("No categories left after filtering.")
        raise SystemExit(1)
    empty = [k for k, v in categories.items() if len(v) == 0]
    if empty:
        logger.warning(f"{len(empty)} empty categories; their overlap is 0 by convention.")

    with CliStatus("Clustering categories...") as task:
        try:
            order, overlap = order_categories(categories, method=args.method)
        except Exception:
            task.fail("Clustering categories ...Failed")
            raise
        task.complete(f"Clustering {len(order)} categories ...Finished")

    overlap.to_csv(f"{outprefix}.overlap.tsv", sep="\t", float_format="%.6g")
    with open(f"{outprefix}.order.txt", "w", encoding="utf-8") as f:
        f.write("\n".join(order) + "\n")

    mpl.rcParams["pdf.fonttype"] = 42
    mpl.rcParams["font.size"] = 6
    side = min(16.0, max(3.0, 0.18 * len(order) + 2.0))
    fig = plt.figure(figsize=(side + 1.0, side), dpi=300)
    ax = fig.add_subplot(111)
    overlap_heatmap(overlap, ax, order=order, cmap=args.cmap, annotate=args.annotate)
    fig_path = f"{outprefix}.overlap.{args.format}"
    fig.savefig(fig_path, bbox_inches="tight", transparent=True)
    plt.close(fig)

    logger.info(
        "Overlap heatmap, matrix and order saved to:\n"
        f"  {fig_path}\n  {outprefix}.overlap.tsv\n  {outprefix}.order.txt"
    )
    logger.info(f"\nFinished in {round(time.time() - t_start, 2)} seconds.")


if __name__ == "__main__":
    main()
