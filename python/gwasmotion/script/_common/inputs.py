"""
Argument groups and loaders shared by the gm modules.
"""

import argparse
import logging
from typing import Optional

from gwasmotion.gtools.reader import build_categories, read_pathways


def add_assoc_arguments(group: argparse._ArgumentGroup) -> None:
    group.add_argument(
        "-chr", "--chr", type=str, default="chrom",
        help="Column name for chromosome (default: %(default)s).",
    )
    group.add_argument(
        "-pos", "--pos", type=str, default="pos",
        help="Column name for base position (default: %(default)s).",
    )
    group.add_argument(
        "-id", "--id", type=str, default="id",
        help="Column name for marker id (default: %(default)s).",
    )
    group.add_argument(
        "-pvalue", "--pvalue", type=str, default="p",
        help="Column name for p-value (default: %(default)s).",
    )
    group.add_argument(
        "-assembly", "--assembly", type=str, default="GRCh37",
        help=(
            "Chromosome lengths: GRCh37/hg19, GRCh38/hg38, or a two-column "
            "TSV (chrom, length) whose order defines the x-axis (default: %(default)s)."
        ),
    )


def add_pathway_arguments(group: argparse._ArgumentGroup, required: bool = False) -> None:
    group.add_argument(
        "-pathway", "--pathway", type=str, default=None, required=required,
        help="Marker-to-pathway mapping table (tab-delimited).",
    )
    group.add_argument(
        "-pathway-id", "--pathway-id", dest="pathway_id", type=str, default="id",
        help="Marker id column of the mapping table (default: %(default)s).",
    )
    group.add_argument(
        "-pathway-col", "--pathway-col", dest="pathway_col", type=str, default="pathway",
        help="Pathway name column of the mapping table (default: %(default)s).",
    )
    group.add_argument(
        "-top-col", "--top-col", dest="top_col", type=str, default="top",
        help="Top-level pathway column of the mapping table (default: %(default)s).",
    )
    group.add_argument(
        "-level", "--level", type=str, choices=["pathway", "top"], default="pathway",
        help="Group markers by pathway or by top-level pathway (default: %(default)s).",
    )
    group.add_argument(
        "-min-size", "--min-size", dest="min_size", type=int, default=1,
        help="Drop categories with fewer markers than this (default: %(default)s).",
    )


def load_categories(
    args: argparse.Namespace,
    logger: logging.Logger,
    universe: Optional[set] = None,
) -> dict[str, frozenset]:
    """Read the mapping table named by --pathway and group ids by --level."""
    top_col = args.top_col if args.level == "top" else None
    mapping = read_pathways(args.pathway, args.pathway_id, args.pathway_col, top_col)
    column = "top" if args.level == "top" else "pathway"
    categories = build_categories(mapping, column, min_size=args.min_size, universe=universe)
    logger.info(
        f"Loaded {len(categories)} {column} categories from {args.pathway} "
        f"({mapping['id'].nunique()} mapped markers)."
    )
    return categories


FIGURE_FORMATS = ("pdf", "png", "svg", "tif")


def add_output_arguments(
    group: argparse._ArgumentGroup,
    *,
    figure_format: bool = True,
    threads: Optional[int] = None,
) -> None:
    """-o/-prefix/-v, plus -format and -t when requested (``threads`` is the -t default)."""
    if figure_format:
        group.add_argument(
            "-format", "--format", type=str.lower, choices=FIGURE_FORMATS, default="png",
            help="Output figure format (default: %(default)s).",
        )
    group.add_argument(
        "-o", "--out", type=str, default=".",
        help="Output directory (default: current directory).",
    )
    group.add_argument(
        "-prefix", "--prefix", type=str, default="gwasmotion",
        help="Prefix of output and log files (default: %(default)s).",
    )
    if threads is not None:
        group.add_argument(
            "-t", "--thread", type=int, default=threads,
            help="Worker processes, -1 uses all cores (default: %(default)s).",
        )
    group.add_argument(
        "-v", "--verbose", action="store_true", default=False,
        help="Debug-level logging.",
    )
