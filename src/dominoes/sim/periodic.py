from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from dominoes.sim.core import CascadeEngine
from dominoes.sim.modules import EngineModule

StartCallback = Callable[[CascadeEngine, int], None]


@dataclass(frozen=True)
class StartTask:
    interval_ticks: int
    start_tick: int = 0
    type_id: int | None = None

    def is_due(self, tick: int) -> bool:
        return tick >= self.start_tick and (tick - self.start_tick) % self.interval_ticks == 0


class PeriodicStartScheduler(EngineModule):
    """Timed ``onStart`` triggers, fired every ``interval_ticks`` from ``start_tick``.

    Signals are queued in ``on_tick_start``, before the tick takes its queue
    snapshot, so a task due at tick N is resolved during tick N.
    """

    name = "periodic_start_scheduler"

    def __init__(self) -> None:
        # Insertion order is the firing order within a tick.
        self._tasks: dict[str, StartTask] = {}
        self._callbacks: dict[str, StartCallback] = {}

    def register_task(
        self,
        *,
        task_name: str,
        interval_ticks: int,
        start_tick: int = 0,
        type_id: int | None = None,
    ) -> None:
        if not task_name:
            raise ValueError("task_name must be a non-empty string")
        if not isinstance(interval_ticks, int) or interval_ticks <= 0:
            raise ValueError("interval_ticks must be a positive integer")
        if not isinstance(start_tick, int) or start_tick < 0:
            raise ValueError("start_tick must be a non-negative integer")

        existing = self._tasks.get(task_name)
        if existing is None:
            self._tasks[task_name] = StartTask(interval_ticks=interval_ticks, start_tick=start_tick, type_id=type_id)
            return
        if existing.interval_ticks != interval_ticks:
            raise ValueError(
                f"periodic task {task_name!r} already registered with interval "
                f"{existing.interval_ticks}; got {interval_ticks}"
            )
        if existing.start_tick != start_tick:
            raise ValueError(
                f"periodic task {task_name!r} already registered with start_tick "
                f"{existing.start_tick}; got {start_tick}"
            )
        if existing.type_id != type_id:
            raise ValueError(
                f"periodic task {task_name!r} already registered with type_id "
                f"{existing.type_id}; got {type_id}"
            )

    def set_task_callback(self, task_name: str, callback: StartCallback) -> None:
        if task_name not in self._tasks:
            raise ValueError(f"cannot set callback for unknown periodic task: {task_name}")
        self._callbacks[task_name] = callback

    def is_due(self, task_name: str, tick: int) -> bool:
        return self._tasks[task_name].is_due(tick)

    def on_tick_start(self, engine: CascadeEngine, tick: int) -> None:
        for task_name, task in self._tasks.items():
            if not task.is_due(tick):
                continue
            engine.signal_start(task.type_id)
            if task_name in self._callbacks:
                self._callbacks[task_name](engine, tick)
