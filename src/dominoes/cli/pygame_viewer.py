from __future__ import annotations

import argparse
import importlib.metadata
import os
import platform
import sys
from typing import Any

from dominoes.cli.viewer import BoardController, Cursor, LOG_PREFIX, build_engine
from dominoes.content.catalog import DEFAULT_CATALOG_PATH
from dominoes.sim.core import DEFAULT_TICK_INTERVAL, CascadeEngine, Node
from dominoes.sim.states import NODE_STATE_FALLEN, NODE_STATE_FALLING, NODE_STATE_STANDING, NODE_STATE_UNFALLING

CELL_SIZE = 24
WINDOW_SIZE = (1280, 800)
HUD_HEIGHT = 56
SIM_TICK_SECONDS = DEFAULT_TICK_INTERVAL / 1000.0
DEFAULT_SAVE_PATH = "saves/board.dom"
HEADLESS_ENV_VAR = "DOMINOES_HEADLESS"

BACKGROUND_COLOR = (17, 18, 25)
GRID_COLOR = (28, 30, 40)
GLYPH_COLOR = (240, 240, 240)
CURSOR_COLOR = (255, 243, 130)
STATE_COLORS: dict[str, tuple[int, int, int]] = {
    NODE_STATE_STANDING: (52, 84, 170),
    NODE_STATE_FALLING: (60, 150, 80),
    NODE_STATE_FALLEN: (170, 60, 60),
    NODE_STATE_UNFALLING: (180, 150, 50),
}

pygame: Any | None = None


def _env_flag_enabled(var_name: str) -> bool:
    return os.environ.get(var_name, "").strip().lower() in {"1", "true", "yes", "on"}


def _print_startup_banner() -> None:
    try:
        pygame_version = importlib.metadata.version("pygame")
    except importlib.metadata.PackageNotFoundError:
        pygame_version = "not-installed"
    print(
        f"{LOG_PREFIX} startup "
        f"python={platform.python_version()} "
        f"pygame={pygame_version} "
        f"platform={platform.platform()}"
    )
    for name in ("SDL_VIDEODRIVER", "SDL_AUDIODRIVER"):
        value = os.environ.get(name, "<unset>")
        print(f"{LOG_PREFIX} env {name}={value}")


def _ensure_pygame_imported() -> Any:
    global pygame
    if pygame is None:
        import pygame as pygame_module

        pygame = pygame_module
    return pygame


def board_cell_at_pixel(pixel: tuple[int, int], cursor: Cursor, window_size: tuple[int, int] = WINDOW_SIZE) -> tuple[int, int]:
    """Board coordinate under a window pixel; the cursor cell sits at the board-area center."""
    center_x = window_size[0] // 2
    center_y = HUD_HEIGHT + (window_size[1] - HUD_HEIGHT) // 2
    return (
        cursor.x + (pixel[0] - center_x) // CELL_SIZE,
        cursor.y + (pixel[1] - center_y) // CELL_SIZE,
    )


def cell_rect_origin(x: int, y: int, cursor: Cursor, window_size: tuple[int, int] = WINDOW_SIZE) -> tuple[int, int]:
    center_x = window_size[0] // 2
    center_y = HUD_HEIGHT + (window_size[1] - HUD_HEIGHT) // 2
    return (center_x + (x - cursor.x) * CELL_SIZE, center_y + (y - cursor.y) * CELL_SIZE)


def visible_nodes(engine: CascadeEngine, cursor: Cursor, window_size: tuple[int, int] = WINDOW_SIZE) -> list[Node]:
    half_columns = window_size[0] // (2 * CELL_SIZE) + 1
    half_rows = (window_size[1] - HUD_HEIGHT) // (2 * CELL_SIZE) + 1
    return [
        node
        for position, node in sorted(engine.nodes.items(), key=lambda item: (item[0][1], item[0][0]))
        if abs(position[0] - cursor.x) <= half_columns and abs(position[1] - cursor.y) <= half_rows
    ]


def _draw_board(screen: Any, engine: CascadeEngine, cursor: Cursor, font: Any) -> None:
    for node in visible_nodes(engine, cursor):
        origin = cell_rect_origin(node.x, node.y, cursor)
        rect = pygame.Rect(origin[0], origin[1], CELL_SIZE, CELL_SIZE)
        if rect.bottom <= HUD_HEIGHT:
            continue
        pygame.draw.rect(screen, STATE_COLORS.get(node.state, GRID_COLOR), rect)
        pygame.draw.rect(screen, GRID_COLOR, rect, 1)
        glyph = font.render(node.glyph, True, GLYPH_COLOR)
        screen.blit(glyph, glyph.get_rect(center=rect.center))

    origin = cell_rect_origin(cursor.x, cursor.y, cursor)
    pygame.draw.rect(screen, CURSOR_COLOR, pygame.Rect(origin[0], origin[1], CELL_SIZE, CELL_SIZE), 2)


def _draw_hud(screen: Any, engine: CascadeEngine, cursor: Cursor, font: Any, status_message: str | None) -> None:
    lines = [
        f"({cursor.x}, {cursor.y}) | nodes={len(engine.nodes)} | tick={engine.tick_count}",
        "arrows move | type to place | ENTER hit | SPACE start | F2 reset | F5 save | F9 load | ESC quit",
    ]
    if status_message:
        lines[0] += f" | {status_message}"
    y = 6
    for line in lines:
        surface = font.render(line, True, GLYPH_COLOR)
        screen.blit(surface, (12, y))
        y += 22


def _direction_for_key(key: int) -> str | None:
    keys = _ensure_pygame_imported()
    return {
        keys.K_RIGHT: "right",
        keys.K_UP: "up",
        keys.K_LEFT: "left",
        keys.K_DOWN: "down",
    }.get(key)


def handle_key(controller: BoardController, key: int, unicode_text: str, *, shift: bool, save_path: str) -> str | None:
    """Apply one key press; returns a status message when the press produced one."""
    keys = _ensure_pygame_imported()
    direction = _direction_for_key(key)
    if direction is not None:
        controller.move_cursor(direction, fast=shift)
        return None
    if key == keys.K_RETURN:
        return None if controller.activate() else "no node under cursor"
    if key == keys.K_BACKSPACE:
        controller.delete_behind()
        return None
    if key == keys.K_SPACE:
        return f"started {controller.start()}"
    if key == keys.K_F2:
        controller.reset()
        return "reset"
    if key == keys.K_F5:
        return controller.save(save_path)
    if key == keys.K_F9:
        return controller.load(save_path)
    if unicode_text and unicode_text.isprintable():
        if not controller.place(unicode_text):
            return f"unknown glyph {unicode_text!r}"
    return None


def run_pygame_viewer(
    catalog_path: str = DEFAULT_CATALOG_PATH,
    *,
    headless: bool = False,
    load_board_path: str | None = None,
    save_path: str = DEFAULT_SAVE_PATH,
) -> int:
    if headless:
        os.environ["SDL_VIDEODRIVER"] = "dummy"
        print(f"{LOG_PREFIX} warning: headless mode active; no window will open.")

    _print_startup_banner()
    pygame_module = _ensure_pygame_imported()

    try:
        pygame_module.init()
    except Exception as exc:
        print(
            f"{LOG_PREFIX} failed during pygame.init(): "
            f"{exc}. Hint: verify a working SDL video driver (set SDL_VIDEODRIVER=dummy for headless mode).",
            file=sys.stderr,
        )
        return 1

    try:
        engine = build_engine(catalog_path)
    except Exception as exc:
        print(f"{LOG_PREFIX} failed to load node type catalog: {exc}", file=sys.stderr)
        pygame_module.quit()
        return 1

    controller = BoardController(engine)
    status_message: str | None = None
    if load_board_path:
        status_message = controller.load(load_board_path)

    try:
        pygame_module.display.set_caption("Dominoes")
        screen = pygame_module.display.set_mode(WINDOW_SIZE)
    except Exception as exc:
        print(
            f"{LOG_PREFIX} failed during pygame.display.set_mode(...): "
            f"{exc}. Hint: in CI or remote shells use --headless or {HEADLESS_ENV_VAR}=1.",
            file=sys.stderr,
        )
        pygame_module.quit()
        return 1

    print(f"{LOG_PREFIX} display initialized: {pygame_module.display.get_driver()}, window size={WINDOW_SIZE}")

    if headless:
        controller.tick_once()
        pygame_module.quit()
        return 0

    clock = pygame_module.time.Clock()
    font = pygame_module.font.SysFont("consolas", 18)
    glyph_font = pygame_module.font.SysFont("consolas", CELL_SIZE - 4)
    accumulator = 0.0
    running = True

    while running:
        accumulator += clock.tick(60) / 1000.0

        for event in pygame_module.event.get():
            if event.type == pygame_module.QUIT:
                running = False
            elif event.type == pygame_module.KEYDOWN and event.key == pygame_module.K_ESCAPE:
                running = False
            elif event.type == pygame_module.KEYDOWN:
                shift = bool(event.mod & pygame_module.KMOD_SHIFT)
                message = handle_key(controller, event.key, event.unicode, shift=shift, save_path=save_path)
                if message is not None:
                    status_message = message
            elif event.type == pygame_module.MOUSEBUTTONDOWN and event.button == 1:
                controller.cursor.x, controller.cursor.y = board_cell_at_pixel(event.pos, controller.cursor)

        while accumulator >= SIM_TICK_SECONDS:
            controller.tick_once()
            accumulator -= SIM_TICK_SECONDS

        screen.fill(BACKGROUND_COLOR)
        _draw_board(screen, engine, controller.cursor, glyph_font)
        _draw_hud(screen, engine, controller.cursor, font, status_message)
        pygame_module.display.flip()

    pygame_module.quit()
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m dominoes.cli.pygame_viewer",
        description="Run the dominoes pygame board editor.",
    )
    parser.add_argument("--catalog-path", default=DEFAULT_CATALOG_PATH, help="Path to the node type catalog JSON.")
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Force SDL dummy video driver for CI/testing and exit without opening a real window.",
    )
    parser.add_argument("--load-board", help="Optional board file (.dom, .tbit or .json) to load on startup.")
    parser.add_argument("--save-path", default=DEFAULT_SAVE_PATH, help="Board file used by F5 save and F9 load.")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    headless = args.headless or _env_flag_enabled(HEADLESS_ENV_VAR)
    raise SystemExit(
        run_pygame_viewer(
            args.catalog_path,
            headless=headless,
            load_board_path=args.load_board,
            save_path=args.save_path,
        )
    )


if __name__ == "__main__":
    main()
