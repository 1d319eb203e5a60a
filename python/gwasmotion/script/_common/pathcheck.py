from __future__ import annotations

from pathlib import Path
from typing import Iterable

from gwasmotion.gtools.registry import builtin_assembly_name


def _norm(path: str) -> str:
    return str(path).replace("\\", "/")


def ensure_file_exists(logger, path: str, label: str) -> bool:
    p = Path(path).expanduser()
    if p.is_file():
        return True
    logger.error(f"{label} not found: {_norm(str(p))}")
    return False


def ensure_assembly(logger, value: str, label: str = "Assembly") -> bool:
    """Builtin assembly name or an existing chromosome-lengths file."""
    text = str(value).strip()
    if builtin_assembly_name(text) is not None:
        return True
    return ensure_file_exists(logger, text, f"{label} lengths file")


def ensure_all_true(results: Iterable[bool]) -> bool:
    return all(bool(x) for x in results)
