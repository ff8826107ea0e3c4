from __future__ import annotations

import copy
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from dominoes.sim.actions import (
    EXECUTION_MODE_INVERTED,
    EXECUTION_MODE_NORMAL,
    EXECUTION_MODES,
    Action,
    ChangeRotation,
    ChangeState,
    Click,
    Fall,
    Knock,
    Unfall,
    Unknock,
    invert_action,
    is_directional,
    with_direction,
)
from dominoes.sim.direction import DIRECTION_BITS, direction_index, rotate, step, validate_direction
from dominoes.sim.modules import EngineModule
from dominoes.sim.node_types import (
    RELATIVE_TO_INPUT,
    RELATIVE_TO_WORLD,
    TRIGGER_ON_CLICKED,
    TRIGGER_ON_KNOCKED,
    TRIGGER_ON_START,
    NodeType,
    Rule,
    validate_trigger,
)
from dominoes.sim.resolver import ResolvedRule, resolve_event
from dominoes.sim.states import (
    NODE_STATE_FALLEN,
    NODE_STATE_FALLING,
    NODE_STATE_STANDING,
    NODE_STATE_UNFALLING,
    SETTLED_STATE_AFTER,
    validate_node_state,
)

DEFAULT_TICK_INTERVAL = 50
MAX_RULE_TRACE = 256

SETTLE_RULES: dict[str, Rule] = {
    transitional: Rule(actions=(ChangeState(settled),))
    for transitional, settled in SETTLED_STATE_AFTER.items()
}

BoardEntry = tuple[int, int, int, int]


@dataclass
class Node:
    node_id: str
    position: tuple[int, int]
    node_type: NodeType
    rotation: int = 0
    state: str = NODE_STATE_STANDING

    @property
    def x(self) -> int:
        return self.position[0]

    @property
    def y(self) -> int:
        return self.position[1]

    @property
    def glyph(self) -> str:
        return self.node_type.glyph(self.rotation)

    def to_entry(self) -> BoardEntry:
        return (self.node_type.type_id, self.position[0], self.position[1], self.rotation)


@dataclass
class QueueEntry:
    """Pending work for one queue id: accumulated signals, or an already chosen rule."""

    node: Node
    signals: dict[str, int] = field(default_factory=dict)
    rule: Rule | None = None
    direction: str | None = None
    mode: str = EXECUTION_MODE_NORMAL

    @property
    def is_explicit(self) -> bool:
        return self.rule is not None


def _validate_board_entry(entry: Any, *, index: int) -> BoardEntry:
    if not isinstance(entry, (list, tuple)) or len(entry) != 4:
        raise ValueError(f"board entries[{index}] must be a (type_id, x, y, rotation) quad")
    for value in entry:
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"board entries[{index}] must contain only integers")
    type_id, x, y, rotation = entry
    return (type_id, x, y, rotation)


class CascadeEngine:
    """Sparse board of nodes plus the tick-quantized event queue that drives them.

    Signals queued during tick N are resolved together when tick N + 1 runs;
    nothing queued while a tick drains is ever executed in that same tick.
    """

    def __init__(self, node_types: Iterable[NodeType], *, tick_interval: int = DEFAULT_TICK_INTERVAL) -> None:
        node_types = tuple(node_types)
        for index, node_type in enumerate(node_types):
            if not isinstance(node_type, NodeType):
                raise ValueError(f"node_types[{index}] must be a NodeType")
            if not node_type.variants:
                raise ValueError(f"node_types[{index}] is missing its variant glyph list")
        if not isinstance(tick_interval, int) or tick_interval <= 0:
            raise ValueError("tick_interval must be a positive integer")

        self.node_types = node_types
        self.tick_interval = tick_interval
        self.tick_count = 0
        self.nodes: dict[tuple[int, int], Node] = {}
        self.modules: list[EngineModule] = []
        self.rule_trace: list[dict[str, Any]] = []
        self._types_by_id: dict[int, NodeType] = {}
        for node_type in node_types:
            self._types_by_id.setdefault(node_type.type_id, node_type)
        self._queue: dict[str, QueueEntry] = {}
        self._next_node_counter = 1
        self._next_entry_counter = 1

    @property
    def elapsed_time(self) -> int:
        return self.tick_count * self.tick_interval

    # Board

    def node_type_by_id(self, type_id: int) -> NodeType | None:
        return self._types_by_id.get(type_id)

    def node_type_for_glyph(self, glyph: str) -> tuple[NodeType, int] | None:
        for node_type in self.node_types:
            if glyph in node_type.variants:
                return node_type, node_type.variants.index(glyph)
        return None

    def add_node(self, spec: str | NodeType, x: int, y: int, *, rotation: int = 0) -> bool:
        """Place a node from a variant glyph or an explicit type, replacing any occupant."""
        if isinstance(spec, str):
            match = self.node_type_for_glyph(spec)
            if match is None:
                return False
            node_type, rotation = match
        elif isinstance(spec, NodeType):
            if self._types_by_id.get(spec.type_id) is not spec:
                return False
            node_type = spec
        else:
            return False

        position = (int(x), int(y))
        self.nodes[position] = Node(
            node_id=self._new_node_id(),
            position=position,
            node_type=node_type,
            rotation=rotation % node_type.rotation_count,
        )
        return True

    def remove_node(self, x: int, y: int) -> bool:
        return self.nodes.pop((x, y), None) is not None

    def node_at(self, x: int, y: int) -> Node | None:
        return self.nodes.get((x, y))

    def find_node(self, node_id: str) -> Node | None:
        for node in self.nodes.values():
            if node.node_id == node_id:
                return node
        return None

    def load(self, entries: Sequence[Sequence[int]]) -> None:
        """Replace the board with ``(type_id, x, y, rotation)`` entries.

        Entries are validated before anything is cleared. Unknown type ids are
        skipped and rotations wrap into the type's variant range.
        """
        validated = [_validate_board_entry(entry, index=index) for index, entry in enumerate(entries)]
        self.nodes.clear()
        self._queue.clear()
        for type_id, x, y, rotation in validated:
            node_type = self._types_by_id.get(type_id)
            if node_type is None:
                continue
            self.add_node(node_type, x, y, rotation=rotation % node_type.rotation_count)

    def entries(self) -> list[BoardEntry]:
        return [self.nodes[position].to_entry() for position in sorted(self.nodes, key=lambda pos: (pos[1], pos[0]))]

    def reset_states(self) -> None:
        for node in self.nodes.values():
            node.state = NODE_STATE_STANDING
        self._queue.clear()

    # Queue

    def queue_event(
        self,
        entry_id: str,
        node: Node,
        trigger: str,
        direction: str | None = None,
        *,
        rule: Rule | None = None,
        mode: str = EXECUTION_MODE_NORMAL,
    ) -> None:
        """Accumulate a signal for ``entry_id`` or store an explicit rule for next tick.

        Directional signals for the same trigger are OR-ed into one mask. The
        most recent call decides the execution mode of the entry.
        """
        if mode not in EXECUTION_MODES:
            raise ValueError(f"mode must be one of {sorted(EXECUTION_MODES)}; got {mode!r}")
        if direction is not None:
            validate_direction(direction)

        if rule is not None:
            self._queue[entry_id] = QueueEntry(node=node, rule=rule, direction=direction, mode=mode)
            return

        validate_trigger(trigger)
        entry = self._queue.get(entry_id)
        if entry is None or entry.is_explicit:
            entry = QueueEntry(node=node)
            self._queue[entry_id] = entry
        bit = DIRECTION_BITS[direction] if direction is not None else 0
        entry.signals[trigger] = entry.signals.get(trigger, 0) | bit
        entry.node = node
        entry.mode = mode

    def schedule_rule(
        self,
        node: Node,
        rule: Rule,
        *,
        direction: str | None = None,
        mode: str = EXECUTION_MODE_NORMAL,
    ) -> str:
        entry_id = f"evt-{self._next_entry_counter:08d}"
        self._next_entry_counter += 1
        self.queue_event(entry_id, node, "", direction, rule=rule, mode=mode)
        return entry_id

    def signal_start(self, type_id: int | None = None) -> int:
        count = 0
        for position in sorted(self.nodes, key=lambda pos: (pos[1], pos[0])):
            node = self.nodes[position]
            if type_id is not None and node.node_type.type_id != type_id:
                continue
            self.queue_event(node.node_id, node, TRIGGER_ON_START)
            count += 1
        return count

    def pending_entries(self) -> list[tuple[str, QueueEntry]]:
        return list(self._queue.items())

    # Ticks

    def register_module(self, module: EngineModule) -> None:
        if any(existing.name == module.name for existing in self.modules):
            raise ValueError(f"duplicate engine module name: {module.name}")
        self.modules.append(module)
        module.on_engine_start(self)

    def get_module(self, module_name: str) -> EngineModule | None:
        for module in self.modules:
            if module.name == module_name:
                return module
        return None

    def tick(self) -> None:
        tick = self.tick_count
        for module in self.modules:
            module.on_tick_start(self, tick)

        captured = self._queue
        self._queue = {}
        for entry in captured.values():
            self._drain_entry(entry, tick=tick)

        for module in self.modules:
            module.on_tick_end(self, tick)
        self.tick_count += 1

    def advance_ticks(self, ticks: int) -> None:
        for _ in range(ticks):
            self.tick()

    def get_rule_trace(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.rule_trace)

    def _drain_entry(self, entry: QueueEntry, *, tick: int) -> None:
        node = entry.node
        # The node was removed or replaced after this entry was queued.
        if self.nodes.get(node.position) is not node:
            return

        if entry.rule is not None:
            resolved = ResolvedRule(
                rule=entry.rule,
                trigger=None,
                rule_index=-1,
                signal_mask=0,
                direction=entry.direction,
            )
        else:
            resolved = resolve_event(node.node_type.events, entry.signals.items())
            if resolved is None:
                return

        self.execute_rule(node, resolved.rule, resolved.direction, mode=entry.mode)
        for module in self.modules:
            module.on_rule_executed(self, node, resolved, entry.mode)
        self._append_rule_trace_entry(
            {
                "tick": tick,
                "node_id": node.node_id,
                "position": [node.position[0], node.position[1]],
                "trigger": resolved.trigger,
                "rule_index": resolved.rule_index,
                "direction": resolved.direction,
                "mode": entry.mode,
            }
        )

    def _append_rule_trace_entry(self, entry: dict[str, Any]) -> None:
        self.rule_trace.append(entry)
        if len(self.rule_trace) > MAX_RULE_TRACE:
            overflow = len(self.rule_trace) - MAX_RULE_TRACE
            del self.rule_trace[:overflow]

    def _new_node_id(self) -> str:
        node_id = f"node-{self._next_node_counter:08d}"
        self._next_node_counter += 1
        return node_id

    # Action execution

    def execute_rule(
        self,
        node: Node,
        rule: Rule,
        input_direction: str | None = None,
        *,
        mode: str = EXECUTION_MODE_NORMAL,
    ) -> None:
        if mode not in EXECUTION_MODES:
            raise ValueError(f"mode must be one of {sorted(EXECUTION_MODES)}; got {mode!r}")
        for action in rule.actions:
            if mode == EXECUTION_MODE_INVERTED:
                action = invert_action(action)
            if is_directional(action):
                action = with_direction(
                    action,
                    self._frame_direction(node, rule, action.direction, input_direction),
                )
            self.apply_action(node, action)

    def _frame_direction(self, node: Node, rule: Rule, authored: str, input_direction: str | None) -> str:
        if rule.relative_to == RELATIVE_TO_WORLD:
            return authored
        if rule.relative_to == RELATIVE_TO_INPUT:
            return rotate(authored, direction_index(input_direction or "right"))
        return rotate(authored, node.rotation)

    def apply_action(self, node: Node, action: Action) -> None:
        if isinstance(action, Knock):
            self.knock(node, action.direction)
        elif isinstance(action, Unknock):
            self.unknock(node, action.direction)
        elif isinstance(action, Click):
            self.click(node, action.direction)
        elif isinstance(action, Fall):
            self.fall(node)
        elif isinstance(action, Unfall):
            self.unfall(node)
        elif isinstance(action, ChangeState):
            self.change_state(node, action.state)
        elif isinstance(action, ChangeRotation):
            self.change_rotation(node, action.delta)
        else:
            raise TypeError(f"unknown action: {action!r}")

    def _neighbor(self, node: Node, direction: str) -> Node | None:
        return self.nodes.get(step(node.position, direction))

    def knock(self, node: Node, direction: str) -> None:
        neighbor = self._neighbor(node, direction)
        if neighbor is None or neighbor.state != NODE_STATE_STANDING:
            return
        self.queue_event(neighbor.node_id, neighbor, TRIGGER_ON_KNOCKED, rotate(direction, -neighbor.rotation))

    def unknock(self, node: Node, direction: str) -> None:
        neighbor = self._neighbor(node, direction)
        if neighbor is None or neighbor.state != NODE_STATE_FALLEN:
            return
        self.queue_event(
            neighbor.node_id,
            neighbor,
            TRIGGER_ON_KNOCKED,
            rotate(direction, -neighbor.rotation),
            mode=EXECUTION_MODE_INVERTED,
        )

    def click(self, node: Node, direction: str) -> None:
        neighbor = self._neighbor(node, direction)
        if neighbor is None:
            return
        self.queue_event(neighbor.node_id, neighbor, TRIGGER_ON_CLICKED, rotate(direction, -neighbor.rotation))

    def fall(self, node: Node) -> None:
        self.change_state(node, NODE_STATE_FALLING)
        self.schedule_rule(node, SETTLE_RULES[NODE_STATE_FALLING])

    def unfall(self, node: Node) -> None:
        self.change_state(node, NODE_STATE_UNFALLING)
        self.schedule_rule(node, SETTLE_RULES[NODE_STATE_UNFALLING])

    def change_state(self, node: Node, state: str) -> None:
        node.state = validate_node_state(state)

    def change_rotation(self, node: Node, delta: int) -> None:
        node.rotation = (node.rotation + delta) % node.node_type.rotation_count
