from pathlib import Path

import pytest

from dominoes.cli.viewer import AsciiViewer, BoardController, Cursor, build_engine


def test_cursor_move_sets_axis_and_direction() -> None:
    cursor = Cursor()

    cursor.move("up", 2)
    assert (cursor.x, cursor.y) == (0, -2)
    assert cursor.axis == "v"
    assert cursor.direction == "up"

    cursor.move("left")
    assert (cursor.x, cursor.y) == (-1, -2)
    assert cursor.direction == "left"

    cursor.advance()
    assert (cursor.x, cursor.y) == (-2, -2)


def test_place_advances_along_last_move_axis() -> None:
    controller = BoardController(build_engine())
    controller.move_cursor("down")

    assert controller.place("|") is True
    assert controller.place("-") is True
    assert controller.place("?") is False

    assert controller.engine.entries() == [(0, 0, 1, 0), (0, 0, 2, 1)]
    assert (controller.cursor.x, controller.cursor.y) == (0, 3)


def test_delete_behind_removes_previous_cell() -> None:
    controller = BoardController(build_engine())
    controller.place("|")

    assert controller.delete_behind() is True
    assert controller.engine.nodes == {}
    assert (controller.cursor.x, controller.cursor.y) == (0, 0)
    assert controller.delete_behind() is False


def test_activate_queues_knock_and_click_in_node_frame() -> None:
    engine = build_engine()
    controller = BoardController(engine)
    engine.add_node("^", 0, 0)
    controller.move_cursor("right")
    controller.cursor.x = 0

    assert controller.activate() is True

    ((_, entry),) = engine.pending_entries()
    assert entry.signals == {"onKnocked": 0b1000, "onClicked": 0}


def test_activate_on_empty_cell_does_nothing() -> None:
    controller = BoardController(build_engine())

    assert controller.activate() is False
    assert controller.engine.pending_entries() == []


def test_start_tick_and_reset() -> None:
    controller = BoardController(build_engine())
    controller.place("S")
    controller.place("|")

    assert controller.start(3) == 1
    controller.tick_once()
    controller.advance_ticks(2)
    assert [node.state for node in controller.engine.nodes.values()] == ["fallen", "fallen"]

    controller.reset()
    assert [node.state for node in controller.engine.nodes.values()] == ["standing", "standing"]
    assert controller.engine.tick_count == 3


def test_render_without_color_shows_glyphs_and_status() -> None:
    controller = BoardController(build_engine())
    controller.place("|")
    controller.place("^")
    view = AsciiViewer(color=False)

    rendered = view.render(controller.engine, controller.cursor, width=5, height=1)

    assert rendered.splitlines() == ["|^   ", "(2, 0) nodes=2 tick=0"]


def test_render_with_color_marks_cursor() -> None:
    controller = BoardController(build_engine())
    view = AsciiViewer()

    assert view.render_cell(controller.engine, 0, 0, is_cursor=True) == "\x1b[7m \x1b[0m"
    controller.engine.add_node("|", 0, 0)
    assert view.render_cell(controller.engine, 0, 0) == "\x1b[44m|\x1b[0m"


def test_controller_save_and_load_report_outcomes(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "board.dom"
    controller = BoardController(build_engine())
    controller.place("|")

    assert controller.save(path) == f"saved {path}"

    other = BoardController(build_engine())
    assert other.load(path) == f"loaded {path}"
    assert other.engine.entries() == [(0, 0, 0, 0)]
    assert "[dominoes.viewer] loaded" in capsys.readouterr().out


def test_controller_load_reports_missing_and_corrupt_files(tmp_path: Path) -> None:
    controller = BoardController(build_engine())
    controller.place("|")
    missing = tmp_path / "missing.dom"
    corrupt = tmp_path / "corrupt.dom"
    corrupt.write_bytes(b"\x01\x02")

    assert controller.load(missing) == f"load failed: file not found ({missing})"
    assert controller.load(corrupt).startswith("load failed: corrupted save data")
    assert controller.engine.entries() == [(0, 0, 0, 0)]


def test_activating_a_dial_rotates_it_instead_of_knocking_it_over() -> None:
    controller = BoardController(build_engine())
    controller.place("0")
    controller.cursor.x = 0

    assert controller.activate() is True
    controller.tick_once()

    dial = controller.engine.node_at(0, 0)
    assert dial.rotation == 1
    assert dial.glyph == "1"
    assert dial.state == "standing"
