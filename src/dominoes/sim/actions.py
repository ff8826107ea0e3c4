from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from dominoes.sim.direction import validate_direction
from dominoes.sim.states import validate_node_state

EXECUTION_MODE_NORMAL = "normal"
EXECUTION_MODE_INVERTED = "inverted"
EXECUTION_MODES = {EXECUTION_MODE_NORMAL, EXECUTION_MODE_INVERTED}


@dataclass(frozen=True)
class ChangeState:
    state: str

    def __post_init__(self) -> None:
        validate_node_state(self.state, field_name="changeState.state")


@dataclass(frozen=True)
class ChangeRotation:
    delta: int

    def __post_init__(self) -> None:
        if not isinstance(self.delta, int) or isinstance(self.delta, bool):
            raise ValueError("changeRotation.delta must be an integer")


@dataclass(frozen=True)
class Knock:
    direction: str

    def __post_init__(self) -> None:
        validate_direction(self.direction, field_name="knock.direction")


@dataclass(frozen=True)
class Unknock:
    direction: str

    def __post_init__(self) -> None:
        validate_direction(self.direction, field_name="unknock.direction")


@dataclass(frozen=True)
class Click:
    direction: str

    def __post_init__(self) -> None:
        validate_direction(self.direction, field_name="click.direction")


@dataclass(frozen=True)
class Fall:
    pass


@dataclass(frozen=True)
class Unfall:
    pass


Action = Union[ChangeState, ChangeRotation, Knock, Unknock, Click, Fall, Unfall]
DirectionalAction = Union[Knock, Unknock, Click]

ACTION_KINDS: dict[str, type] = {
    "changeState": ChangeState,
    "changeRotation": ChangeRotation,
    "knock": Knock,
    "unknock": Unknock,
    "click": Click,
    "fall": Fall,
    "unfall": Unfall,
}

# Older catalogs spell the inverse of ``fall`` as ``stand``.
ACTION_KIND_ALIASES = {"stand": "unfall"}


def is_directional(action: Action) -> bool:
    return isinstance(action, (Knock, Unknock, Click))


def invert_action(action: Action) -> Action:
    """Swap the action kind for its inverse; arguments are carried over unchanged."""
    if isinstance(action, Fall):
        return Unfall()
    if isinstance(action, Unfall):
        return Fall()
    if isinstance(action, Knock):
        return Unknock(action.direction)
    if isinstance(action, Unknock):
        return Knock(action.direction)
    if isinstance(action, (Click, ChangeState, ChangeRotation)):
        return action
    raise TypeError(f"unknown action: {action!r}")


def with_direction(action: DirectionalAction, direction: str) -> DirectionalAction:
    return type(action)(direction)


def parse_action(raw: Any, *, field_name: str = "action") -> Action:
    """Build an action from its authored form: ``["knock", "right"]`` or ``"fall"``."""
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, (list, tuple)) or not raw:
        raise ValueError(f"{field_name} must be a non-empty list")
    kind = raw[0]
    if not isinstance(kind, str):
        raise ValueError(f"{field_name}[0] must be an action name")
    kind = ACTION_KIND_ALIASES.get(kind, kind)
    if kind not in ACTION_KINDS:
        raise ValueError(f"{field_name} has unknown action kind: {kind!r}")
    args = list(raw[1:])

    if kind in {"fall", "unfall"}:
        if args:
            raise ValueError(f"{field_name}: {kind} takes no argument")
        return ACTION_KINDS[kind]()
    if len(args) != 1:
        raise ValueError(f"{field_name}: {kind} requires exactly one argument")
    argument = args[0]
    if kind == "changeRotation":
        if not isinstance(argument, int) or isinstance(argument, bool):
            raise ValueError(f"{field_name}: changeRotation argument must be an integer")
        return ChangeRotation(argument)
    if not isinstance(argument, str):
        raise ValueError(f"{field_name}: {kind} argument must be a string")
    return ACTION_KINDS[kind](argument)

