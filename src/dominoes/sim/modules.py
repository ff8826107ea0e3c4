from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dominoes.sim.core import CascadeEngine, Node
    from dominoes.sim.resolver import ResolvedRule


class EngineModule:
    """Hook substrate for code that reacts to the engine's tick lifecycle.

    Modules are registered on a ``CascadeEngine`` instance and are executed in
    stable registration order for every lifecycle hook.
    """

    name: str

    def on_engine_start(self, engine: CascadeEngine) -> None:
        """Called once, immediately when the module is registered."""

    def on_tick_start(self, engine: CascadeEngine, tick: int) -> None:
        """Called before the queue snapshot of each tick is taken."""

    def on_tick_end(self, engine: CascadeEngine, tick: int) -> None:
        """Called after every captured queue entry has been executed."""

    def on_rule_executed(self, engine: CascadeEngine, node: Node, resolved: ResolvedRule, mode: str) -> None:
        """Called after a rule's action list ran against ``node``."""
