from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from dominoes.sim.actions import Action

TRIGGER_ON_KNOCKED = "onKnocked"
TRIGGER_ON_CLICKED = "onClicked"
TRIGGER_ON_START = "onStart"
BASE_TRIGGERS: tuple[str, ...] = (TRIGGER_ON_KNOCKED, TRIGGER_ON_CLICKED, TRIGGER_ON_START)

RELATIVE_TO_SELF = "self"
RELATIVE_TO_WORLD = "world"
RELATIVE_TO_INPUT = "input"
RELATIVE_FRAMES = {RELATIVE_TO_SELF, RELATIVE_TO_WORLD, RELATIVE_TO_INPUT}


def validate_trigger(trigger: str, *, field_name: str = "trigger") -> str:
    if trigger not in BASE_TRIGGERS:
        raise ValueError(f"{field_name} must be one of {list(BASE_TRIGGERS)}; got {trigger!r}")
    return trigger


@dataclass(frozen=True)
class Rule:
    """One trigger-conditioned, priority-ranked action list of a node type."""

    actions: tuple[Action, ...]
    priority: int = 0
    direction_mask: int = 0
    mask_bits: int = 0
    relative_to: str = RELATIVE_TO_SELF

    def __post_init__(self) -> None:
        if self.relative_to not in RELATIVE_FRAMES:
            raise ValueError(f"rule.relative_to must be one of {sorted(RELATIVE_FRAMES)}; got {self.relative_to!r}")
        if not isinstance(self.direction_mask, int) or not 0 <= self.direction_mask <= 0b1111:
            raise ValueError("rule.direction_mask must be an integer in [0, 15]")


@dataclass(frozen=True, eq=False)
class NodeType:
    """Shared, read-only node kind; compared and hashed by identity."""

    type_id: int
    variants: tuple[str, ...]
    events: Mapping[str, tuple[Rule, ...]] = field(default_factory=dict)
    name: str = ""

    def __post_init__(self) -> None:
        if not self.variants:
            raise ValueError(f"node type {self.type_id} must declare at least one variant")
        # Every base trigger is present so lookups never need existence checks.
        events = {trigger: tuple(self.events.get(trigger, ())) for trigger in BASE_TRIGGERS}
        object.__setattr__(self, "events", MappingProxyType(events))

    @property
    def rotation_count(self) -> int:
        return len(self.variants)

    def rules_for(self, trigger: str) -> tuple[Rule, ...]:
        return self.events[validate_trigger(trigger)]

    def glyph(self, rotation: int) -> str:
        return self.variants[rotation % self.rotation_count]
