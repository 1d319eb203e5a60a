from typing import Optional, Union

import matplotlib.pyplot as plt
from matplotlib import colors as mcolors

from gwasmotion.gtools.classify import cmap_colors

# ("cmap", name) or ("list", [hex, ...]); None means the black/grey default.
PalleteSpec = Optional[tuple[str, Union[str, list[str]]]]


def parse_ratio(value: object, name: str) -> float:
    """Aspect ratio from '2', '1.25' or '5/2'."""
    text = "" if value is None else str(value).strip()
    if text == "":
        raise ValueError(f"{name} ratio is empty.")
    num, _, den = text.partition("/")
    try:
        ratio = float(num) / float(den) if den else float(num)
    except ZeroDivisionError:
        raise ValueError(f"{name} ratio denominator cannot be zero.") from None
    except ValueError as e:
        raise ValueError(f"{name} ratio is not a number: {value}") from e
    if ratio <= 0:
        raise ValueError(f"{name} ratio must be > 0.")
    return ratio


def to_hex_color(token: str) -> str:
    """'#1f77b4', 'steelblue' or '(31,119,180)' to a hex color."""
    tok = token.strip()
    if tok.startswith("(") and tok.endswith(")"):
        try:
            rgb = [int(v) for v in tok[1:-1].split(",")]
        except ValueError as e:
            raise ValueError(f"RGB tuple must be integers: {token}") from e
        if len(rgb) != 3 or any(v < 0 or v > 255 for v in rgb):
            raise ValueError(f"RGB tuple needs 3 values in [0, 255]: {token}")
        return mcolors.to_hex([v / 255.0 for v in rgb])
    try:
        return mcolors.to_hex(tok)
    except ValueError as e:
        raise ValueError(f"Invalid color: {token}. Use #RRGGBB, a color name or (R,G,B).") from e


def parse_pallete_spec(value: object) -> PalleteSpec:
    """--pallete: a colormap name, one color, or ';'-separated colors."""
    if value is None:
        return None
    text = str(value).strip()
    if ";" in text:
        colors = [to_hex_color(t) for t in text.split(";") if t.strip()]
        if not colors:
            raise ValueError("Invalid --pallete: empty color list.")
        return ("list", colors)
    if text == "":
        raise ValueError("Invalid --pallete: value is empty.")
    if text in plt.colormaps():
        return ("cmap", text)
    return ("list", [to_hex_color(text)])


def resolve_chrom_colors(spec: PalleteSpec, n_chr: int) -> list[str]:
    """Colors cycled over chromosomes in registry order."""
    if spec is None:
        return ["black", "grey"]
    mode, payload = spec
    if mode == "list":
        return list(payload)
    return cmap_colors(str(payload), n_chr)
