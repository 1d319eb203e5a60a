from .registry import (
    ChromRegistry,
    CoordinateError,
    InvalidChromosome,
    InvalidPosition,
    normalize_chr,
)
from .classify import classify_markers, highlight_palette
from .overlap import category_order, distance_matrix, order_categories, overlap_matrix
from .reader import (
    build_categories,
    read_assoc,
    read_chrom_lengths,
    read_pathways,
    resolve_registry,
)
from .cleaner import chrom_sort_key

__all__ = [
    "ChromRegistry",
    "CoordinateError",
    "InvalidChromosome",
    "InvalidPosition",
    "normalize_chr",
    "classify_markers",
    "highlight_palette",
    "overlap_matrix",
    "distance_matrix",
    "category_order",
    "order_categories",
    "read_assoc",
    "read_pathways",
    "build_categories",
    "read_chrom_lengths",
    "resolve_registry",
    "chrom_sort_key",
]
