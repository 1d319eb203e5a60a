"""
Chromosome registry and genome-wide coordinate mapping.

A registry is an ordered, immutable table of (chromosome, length) pairs.
Its order defines the Manhattan x-axis layout:

    start[0] = 0
    start[i] = length[0] + ... + length[i-1]
    coordinate(chrom, pos) = start[index(chrom)] + pos

Chromosome labels are matched after stripping a leading ``chr``
(case-insensitive), so ``chr1`` and ``1`` refer to the same entry.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, Union

import numpy as np
import pandas as pd

__all__ = [
    "CoordinateError",
    "InvalidChromosome",
    "InvalidPosition",
    "ChromRegistry",
    "BUILTIN_ASSEMBLIES",
    "normalize_chr",
    "builtin_assembly_name",
]

_AUTOSOMES = [str(i) for i in range(1, 23)]

BUILTIN_ASSEMBLIES: dict[str, tuple[int, ...]] = {
    "GRCh37": (
        249250621, 243199373, 198022430, 191154276, 180915260, 171115067,
        159138663, 146364022, 141213431, 135534747, 135006516, 133851895,
        115169878, 107349540, 102531392, 90354753, 81195210, 78077248,
        59128983, 63025520, 48129895, 51304566, 155270560, 59373566,
    ),
    "GRCh38": (
        248956422, 242193529, 198295559, 190214555, 181538259, 170805979,
        159345973, 145138636, 138394717, 133797422, 135086622, 133275309,
        114364328, 107043718, 101991189, 90338345, 83257441, 80373285,
        58617616, 64444167, 46709983, 50818468, 156040895, 57227415,
    ),
}
_ASSEMBLY_ALIAS = {"hg19": "GRCh37", "hg38": "GRCh38"}
_ASSEMBLY_KEYS = {k.lower(): k for k in BUILTIN_ASSEMBLIES}
_ASSEMBLY_KEYS.update(_ASSEMBLY_ALIAS)


class CoordinateError(ValueError):
    """Base class for invalid (chromosome, position) input."""


class InvalidChromosome(CoordinateError):
    """Chromosome label is not part of the registry."""


class InvalidPosition(CoordinateError):
    """Position is not an integer, is negative or is beyond the chromosome length."""


def normalize_chr(value: object) -> str:
    """Strip a leading 'chr' (case-insensitive) and surrounding spaces."""
    text = str(value).strip()
    if text.lower().startswith("chr"):
        text = text[3:]
    return text


def builtin_assembly_name(name: object) -> Optional[str]:
    """Canonical builtin assembly for ``name`` (any case), or None."""
    return _ASSEMBLY_KEYS.get(str(name).strip().lower())


def _integral_positions(positions) -> np.ndarray:
    pos = np.asarray(positions)
    if pos.dtype.kind in "iub":
        return pos.astype(np.int64)
    try:
        values = pos.astype(float)
    except (TypeError, ValueError):
        raise InvalidPosition("Positions must be integers.") from None
    bad = ~np.isfinite(values) | (values != np.floor(values))
    if bad.any():
        j = int(np.flatnonzero(bad)[0])
        raise InvalidPosition(
            f"{int(bad.sum())} position(s) are not integers; first: {pos.ravel()[j]}"
        )
    return values.astype(np.int64)


@dataclass(frozen=True)
class ChromRegistry:
    """
    Ordered chromosome lengths for one genome assembly.

    Parameters
    ----------
    names : sequence of str
        Chromosome labels in axis order.
    lengths : sequence of int
        Chromosome lengths in bp, same order as ``names``.
    """

    names: tuple[str, ...]
    lengths: tuple[int, ...]
    _index: dict = field(init=False, repr=False, compare=False)
    _starts: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        names = tuple(str(n).strip() for n in self.names)
        lengths = tuple(int(x) for x in self.lengths)
        if len(names) == 0:
            raise ValueError("Chromosome registry is empty.")
        if len(names) != len(lengths):
            raise ValueError(
                f"names and lengths differ in size: {len(names)} != {len(lengths)}"
            )
        bad = [n for n, x in zip(names, lengths) if x <= 0]
        if bad:
            raise ValueError(f"Chromosome lengths must be > 0: {', '.join(bad)}")

        index: dict[str, int] = {}
        for i, name in enumerate(names):
            key = normalize_chr(name)
            if key in index:
                raise ValueError(f"Duplicated chromosome in registry: {name}")
            index[key] = i

        starts = np.zeros(len(lengths), dtype=np.int64)
        starts[1:] = np.cumsum(np.asarray(lengths, dtype=np.int64))[:-1]
        starts.setflags(write=False)

        object.__setattr__(self, "names", names)
        object.__setattr__(self, "lengths", lengths)
        object.__setattr__(self, "_index", index)
        object.__setattr__(self, "_starts", starts)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------
    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[object, int]]) -> "ChromRegistry":
        pairs = list(pairs)
        return cls(tuple(str(n) for n, _ in pairs), tuple(int(x) for _, x in pairs))

    @classmethod
    def builtin(cls, name: str) -> "ChromRegistry":
        """Human assembly (1-22, X, Y) by name: GRCh37/hg19 or GRCh38/hg38."""
        key = builtin_assembly_name(name)
        if key is None:
            raise ValueError(
                f"Unknown assembly: {name} "
                f"(choose from: {', '.join(list(BUILTIN_ASSEMBLIES) + list(_ASSEMBLY_ALIAS))})"
            )
        return cls(tuple(_AUTOSOMES + ["X", "Y"]), BUILTIN_ASSEMBLIES[key])

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, chrom: object) -> bool:
        return normalize_chr(chrom) in self._index

    def index(self, chrom: object) -> int:
        try:
            return self._index[normalize_chr(chrom)]
        except KeyError:
            raise InvalidChromosome(f"Chromosome not in registry: {chrom}") from None

    def length(self, chrom: object) -> int:
        return self.lengths[self.index(chrom)]

    @property
    def starts(self) -> np.ndarray:
        return self._starts

    @property
    def total_length(self) -> int:
        return int(self._starts[-1] + self.lengths[-1])

    @property
    def midpoints(self) -> np.ndarray:
        """Center of each chromosome span, used for axis tick placement."""
        return self._starts + np.asarray(self.lengths, dtype=np.int64) / 2

    # ------------------------------------------------------------------
    # Coordinate mapping
    # ------------------------------------------------------------------
    def coordinate(self, chrom: object, pos: int) -> int:
        i = self.index(chrom)
        pos = int(_integral_positions([pos])[0])
        if pos < 0 or pos > self.lengths[i]:
            raise InvalidPosition(
                f"Position {pos} out of range for chromosome {self.names[i]} "
                f"(length {self.lengths[i]})."
            )
        return int(self._starts[i] + pos)

    def chrom_indices(self, chroms: Union[Sequence[object], pd.Series]) -> np.ndarray:
        """Registry index for each label; raises on the first unknown label."""
        keys = pd.Series(chroms, dtype=object).map(normalize_chr)
        idx = keys.map(self._index)
        missing = idx.isna()
        if missing.any():
            unknown = pd.unique(pd.Series(chroms, dtype=object)[missing.to_numpy()])
            shown = ", ".join(str(x) for x in unknown[:5])
            raise InvalidChromosome(
                f"{int(missing.sum())} marker(s) on chromosomes not in registry: {shown}"
            )
        return idx.to_numpy(dtype=np.int64)

    def coordinates(
        self,
        chroms: Union[Sequence[object], pd.Series],
        positions: Union[Sequence[int], pd.Series, np.ndarray],
    ) -> np.ndarray:
        """Vectorized ``coordinate`` with the same validation."""
        idx = self.chrom_indices(chroms)
        pos = _integral_positions(positions)
        if pos.shape != idx.shape:
            raise ValueError(
                f"chroms and positions differ in size: {idx.shape[0]} != {pos.shape[0]}"
            )
        limit = np.asarray(self.lengths, dtype=np.int64)[idx]
        bad = (pos < 0) | (pos > limit)
        if bad.any():
            j = int(np.flatnonzero(bad)[0])
            raise InvalidPosition(
                f"{int(bad.sum())} position(s) out of range; first: "
                f"{self.names[idx[j]]}:{pos[j]} (length {limit[j]})."
            )
        return self._starts[idx] + pos
