from __future__ import annotations

import argparse
from typing import Sequence

from dominoes.cli.pygame_viewer import DEFAULT_SAVE_PATH, HEADLESS_ENV_VAR, _env_flag_enabled, run_pygame_viewer
from dominoes.cli.viewer import run_demo
from dominoes.content.catalog import DEFAULT_CATALOG_PATH


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python play.py", description="Dominoes board launcher.")
    parser.add_argument("--catalog-path", default=DEFAULT_CATALOG_PATH, help="Node type catalog JSON.")
    parser.add_argument("--board", help="Board file to load at startup.")
    parser.add_argument("--save-path", default=DEFAULT_SAVE_PATH, help="Board file used for saving.")
    parser.add_argument("--ascii", action="store_true", help="Use the line-driven terminal demo instead of pygame.")
    parser.add_argument("--headless", action="store_true", help="Run startup path in headless mode.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    if args.ascii:
        run_demo(args.catalog_path, args.board)
        return 0
    return run_pygame_viewer(
        catalog_path=args.catalog_path,
        headless=args.headless or _env_flag_enabled(HEADLESS_ENV_VAR),
        load_board_path=args.board,
        save_path=args.save_path,
    )


if __name__ == "__main__":
    raise SystemExit(main())
