from .manhanden import ManhattanPlot, compress_markers
from .heatmap import overlap_heatmap

__all__ = [
    "ManhattanPlot",
    "compress_markers",
    "overlap_heatmap",
]
