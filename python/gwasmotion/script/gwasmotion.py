#!/usr/bin/env python
# -*- coding: utf-8 -*-
import sys
import warnings
warnings.filterwarnings(
    "ignore",
    category=FutureWarning,
    message=".*ChainedAssignmentError.*"
)
import matplotlib as mpl
mpl.use("Agg")
from gwasmotion import __version__ as v
from gwasmotion.script import animate, heatmap, manhattan

__logo__ = r'''
   __ ___      ____ _ ___ _ __ ___   ___ | |_(_) ___  _ __
  / _` \ \ /\ / / _` / __| '_ ` _ \ / _ \| __| |/ _ \| '_ \
 | (_| |\ V  V / (_| \__ \ | | | | | (_) | |_| | (_) | | | |
  \__, | \_/\_/ \__,_|___/_| |_| |_|\___/ \__|_|\___/|_| |_|
  |___/  Animated Manhattan plots for pathway-level GWAS
'''
_banner_line = "*" * 60
__version__ = (
    f"{_banner_line}\n"
    f">gwasmotion v{v}\n"
    f"{_banner_line}"
)


def _usage(prog: str, modules) -> None:
    print(f"Usage: {prog} <module> [options]")
    print(f"Available modules: {' '.join(modules)}")


def main():
    module = {
        "manhattan": manhattan,
        "heatmap": heatmap,
        "animate": animate,
    }
    if len(sys.argv) > 1:
        if sys.argv[1] == "-h" or sys.argv[1] == "--help":
            print(__logo__)
            _usage("gm", module.keys())
        elif sys.argv[1] == "-v" or sys.argv[1] == "--version":
            print(__logo__)
            print(__version__)
        elif sys.argv[1] in module:
            module_name = sys.argv[1]
            # Keep argparse usage as "gm <module> ..."
            sys.argv[0] = f"gm {module_name}"
            del sys.argv[1]
            module[module_name].main()
        else:
            print(f"Unknown module: {sys.argv[1]}")
            _usage("gm", module.keys())
            raise SystemExit(2)
    else:
        _usage("gm", module.keys())


if __name__ == "__main__":
    main()
