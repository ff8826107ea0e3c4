from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

from dominoes.content.catalog import DEFAULT_CATALOG_PATH, load_catalog_json
from dominoes.content.io import load_board, save_board
from dominoes.sim.core import CascadeEngine
from dominoes.sim.direction import DIRECTIONS, DIRECTION_OFFSETS, rotate
from dominoes.sim.node_types import TRIGGER_ON_CLICKED, TRIGGER_ON_KNOCKED
from dominoes.sim.states import NODE_STATE_FALLEN, NODE_STATE_FALLING, NODE_STATE_STANDING, NODE_STATE_UNFALLING

ANSI_RESET = "\x1b[0m"
ANSI_INVERT = "\x1b[7m"
STATE_BACKGROUNDS = {
    NODE_STATE_STANDING: "\x1b[44m",
    NODE_STATE_FALLING: "\x1b[42m",
    NODE_STATE_FALLEN: "\x1b[41m",
    NODE_STATE_UNFALLING: "\x1b[43m",
}
EMPTY_CELL = " "
FAST_CURSOR_STEP = 3
LOG_PREFIX = "[dominoes.viewer]"


@dataclass
class Cursor:
    """Editing cursor; the last move decides the placement axis and activation direction."""

    x: int = 0
    y: int = 0
    axis: str = "h"
    sign: int = 1

    def move(self, direction: str, distance: int = 1) -> None:
        dx, dy = DIRECTION_OFFSETS[direction]
        self.x += dx * distance
        self.y += dy * distance
        self.axis = "h" if dx else "v"
        self.sign = dx if dx else dy

    def advance(self, distance: int = 1) -> None:
        if self.axis == "h":
            self.x += self.sign * distance
        else:
            self.y += self.sign * distance

    @property
    def direction(self) -> str:
        if self.axis == "h":
            return "right" if self.sign > 0 else "left"
        return "down" if self.sign > 0 else "up"


class AsciiViewer:
    """Read-only projection of the board for terminal display."""

    def __init__(self, *, color: bool = True) -> None:
        self.color = color

    def render_cell(self, engine: CascadeEngine, x: int, y: int, *, is_cursor: bool = False) -> str:
        node = engine.node_at(x, y)
        char = node.glyph if node is not None else EMPTY_CELL
        if not self.color:
            return char
        background = STATE_BACKGROUNDS.get(node.state, "") if node is not None else ""
        if is_cursor:
            return f"{ANSI_INVERT}{background}{char}{ANSI_RESET}"
        if node is not None:
            return f"{background}{char}{ANSI_RESET}"
        return char

    def render(self, engine: CascadeEngine, cursor: Cursor, *, width: int = 40, height: int = 12) -> str:
        left = cursor.x - width // 2
        top = cursor.y - height // 2
        lines = [
            "".join(
                self.render_cell(engine, x, y, is_cursor=(x == cursor.x and y == cursor.y))
                for x in range(left, left + width)
            )
            for y in range(top, top + height)
        ]
        lines.append(self.status_line(engine, cursor))
        return "\n".join(lines)

    @staticmethod
    def status_line(engine: CascadeEngine, cursor: Cursor) -> str:
        return f"({cursor.x}, {cursor.y}) nodes={len(engine.nodes)} tick={engine.tick_count}"


class BoardController:
    """Maps editor input onto engine calls; the engine stays the source of truth."""

    def __init__(self, engine: CascadeEngine, cursor: Cursor | None = None) -> None:
        self.engine = engine
        self.cursor = cursor if cursor is not None else Cursor()

    def move_cursor(self, direction: str, *, fast: bool = False) -> None:
        self.cursor.move(direction, FAST_CURSOR_STEP if fast else 1)

    def place(self, glyph: str) -> bool:
        placed = self.engine.add_node(glyph, self.cursor.x, self.cursor.y)
        if placed:
            self.cursor.advance()
        return placed

    def delete_behind(self) -> bool:
        self.cursor.advance(-1)
        return self.engine.remove_node(self.cursor.x, self.cursor.y)

    def activate(self) -> bool:
        """Knock the node under the cursor along the last move direction, then click it."""
        node = self.engine.node_at(self.cursor.x, self.cursor.y)
        if node is None:
            return False
        self.engine.queue_event(
            node.node_id,
            node,
            TRIGGER_ON_KNOCKED,
            rotate(self.cursor.direction, -node.rotation),
        )
        self.engine.queue_event(node.node_id, node, TRIGGER_ON_CLICKED)
        return True

    def start(self, type_id: int | None = None) -> int:
        return self.engine.signal_start(type_id)

    def reset(self) -> None:
        self.engine.reset_states()

    def tick_once(self) -> None:
        self.engine.tick()

    def advance_ticks(self, ticks: int) -> None:
        self.engine.advance_ticks(ticks)

    def save(self, path: str | Path) -> str:
        try:
            save_board(path, self.engine)
        except (OSError, ValueError) as exc:
            print(f"{LOG_PREFIX} save failed path={path}: {exc}", file=sys.stderr)
            return f"save failed: {exc}"
        print(f"{LOG_PREFIX} saved path={path} nodes={len(self.engine.nodes)}")
        return f"saved {path}"

    def load(self, path: str | Path) -> str:
        if not Path(path).exists():
            print(f"{LOG_PREFIX} load skipped; file not found path={path}")
            return f"load failed: file not found ({path})"
        try:
            count = load_board(path, self.engine)
        except (OSError, ValueError) as exc:
            print(f"{LOG_PREFIX} load failed path={path}: {exc}", file=sys.stderr)
            return f"load failed: {exc}"
        print(f"{LOG_PREFIX} loaded path={path} nodes={count}")
        return f"loaded {path}"


def build_engine(catalog_path: str | Path = DEFAULT_CATALOG_PATH) -> CascadeEngine:
    return CascadeEngine(load_catalog_json(catalog_path).node_types)


def run_demo(catalog_path: str = DEFAULT_CATALOG_PATH, board_path: str | None = None) -> None:
    engine = build_engine(catalog_path)
    controller = BoardController(engine)
    if board_path is not None:
        controller.load(board_path)

    view = AsciiViewer()
    print(
        "Dominoes demo. Commands: show | place <glyphs> | goto <x> <y> | move <dir> | hit | start "
        "| tick <n> | reset | save <path> | load <path> | quit"
    )
    print(view.render(engine, controller.cursor))

    while True:
        raw = input("> ").strip()
        if raw in {"quit", "exit"}:
            break
        if raw == "show":
            print(view.render(engine, controller.cursor))
            continue

        parts = raw.split()
        if len(parts) == 2 and parts[0] == "place":
            placed = sum(1 for glyph in parts[1] if controller.place(glyph))
            print(f"placed {placed}")
            continue
        if len(parts) == 3 and parts[0] == "goto":
            controller.cursor.x = int(parts[1])
            controller.cursor.y = int(parts[2])
            continue
        if len(parts) == 2 and parts[0] == "move" and parts[1] in DIRECTIONS:
            controller.move_cursor(parts[1])
            continue
        if raw == "hit":
            print("activated" if controller.activate() else "no node under cursor")
            continue
        if raw == "start":
            print(f"started {controller.start()}")
            continue
        if len(parts) == 2 and parts[0] == "tick":
            controller.advance_ticks(int(parts[1]))
            print(view.render(engine, controller.cursor))
            continue
        if raw == "reset":
            controller.reset()
            continue
        if len(parts) == 2 and parts[0] in {"save", "load"}:
            method = controller.save if parts[0] == "save" else controller.load
            print(method(parts[1]))
            continue

        print("unknown command")


if __name__ == "__main__":
    run_demo()
