import pytest

from dominoes.content.catalog import DEFAULT_CATALOG_PATH, load_catalog_json
from dominoes.sim.core import CascadeEngine
from dominoes.sim.periodic import PeriodicStartScheduler

STARTER_TYPE_ID = 3


def _build_engine() -> CascadeEngine:
    return CascadeEngine(load_catalog_json(DEFAULT_CATALOG_PATH).node_types)


def test_periodic_fires_expected_ticks() -> None:
    engine = _build_engine()
    scheduler = PeriodicStartScheduler()
    observed_ticks: list[int] = []

    scheduler.register_task(task_name="t", interval_ticks=2, start_tick=0)
    scheduler.set_task_callback("t", lambda _engine, tick: observed_ticks.append(tick))
    engine.register_module(scheduler)

    engine.advance_ticks(7)

    assert observed_ticks == [0, 2, 4, 6]


def test_periodic_respects_start_tick() -> None:
    engine = _build_engine()
    scheduler = PeriodicStartScheduler()
    observed_ticks: list[int] = []

    scheduler.register_task(task_name="late", interval_ticks=3, start_tick=4)
    scheduler.set_task_callback("late", lambda _engine, tick: observed_ticks.append(tick))
    engine.register_module(scheduler)

    engine.advance_ticks(11)

    assert observed_ticks == [4, 7, 10]


def test_periodic_ordering_same_tick() -> None:
    engine = _build_engine()
    scheduler = PeriodicStartScheduler()
    observed: list[tuple[str, int]] = []

    scheduler.register_task(task_name="A", interval_ticks=5, start_tick=0)
    scheduler.register_task(task_name="B", interval_ticks=5, start_tick=0)
    scheduler.set_task_callback("A", lambda _engine, tick: observed.append(("A", tick)))
    scheduler.set_task_callback("B", lambda _engine, tick: observed.append(("B", tick)))
    engine.register_module(scheduler)

    engine.advance_ticks(1)

    assert observed == [("A", 0), ("B", 0)]


def test_periodic_start_signal_resolves_in_the_due_tick() -> None:
    engine = _build_engine()
    assert engine.add_node("S", 0, 0)
    assert engine.add_node("|", 3, 0)
    starter = engine.node_at(0, 0)
    domino = engine.node_at(3, 0)
    scheduler = PeriodicStartScheduler()

    scheduler.register_task(task_name="pulse", interval_ticks=4, start_tick=2, type_id=STARTER_TYPE_ID)
    engine.register_module(scheduler)

    engine.advance_ticks(2)
    assert starter.state == "standing"

    engine.tick()
    assert starter.state == "falling"
    assert domino.state == "standing"


def test_periodic_register_task_conflict_rejected() -> None:
    scheduler = PeriodicStartScheduler()

    scheduler.register_task(task_name="t", interval_ticks=5, start_tick=0)

    with pytest.raises(ValueError, match="already registered with interval"):
        scheduler.register_task(task_name="t", interval_ticks=7, start_tick=0)


def test_periodic_register_task_idempotent_same_interval() -> None:
    engine = _build_engine()
    scheduler = PeriodicStartScheduler()
    observed_ticks: list[int] = []

    scheduler.register_task(task_name="t", interval_ticks=5, start_tick=0)
    scheduler.register_task(task_name="t", interval_ticks=5, start_tick=0)
    scheduler.set_task_callback("t", lambda _engine, tick: observed_ticks.append(tick))
    engine.register_module(scheduler)

    engine.advance_ticks(6)

    assert observed_ticks == [0, 5]


def test_duplicate_task_rejected_on_conflicting_start_tick() -> None:
    scheduler = PeriodicStartScheduler()

    scheduler.register_task(task_name="t", interval_ticks=2, start_tick=0)

    with pytest.raises(ValueError, match="already registered with start_tick"):
        scheduler.register_task(task_name="t", interval_ticks=2, start_tick=3)


def test_callback_for_unknown_task_rejected() -> None:
    scheduler = PeriodicStartScheduler()

    with pytest.raises(ValueError, match="unknown periodic task"):
        scheduler.set_task_callback("missing", lambda _engine, _tick: None)


def test_duplicate_module_registration_rejected() -> None:
    engine = _build_engine()
    engine.register_module(PeriodicStartScheduler())

    with pytest.raises(ValueError, match="duplicate engine module name"):
        engine.register_module(PeriodicStartScheduler())


def test_duplicate_task_rejected_on_conflicting_type_id() -> None:
    scheduler = PeriodicStartScheduler()

    scheduler.register_task(task_name="t", interval_ticks=2, type_id=STARTER_TYPE_ID)

    with pytest.raises(ValueError, match="already registered with type_id 3; got 5"):
        scheduler.register_task(task_name="t", interval_ticks=2, type_id=5)
