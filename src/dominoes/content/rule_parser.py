from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from dominoes.sim.actions import parse_action
from dominoes.sim.direction import direction_mask, mask_bit_count, validate_direction
from dominoes.sim.node_types import BASE_TRIGGERS, RELATIVE_FRAMES, RELATIVE_TO_SELF, NodeType, Rule, validate_trigger

TRIGGER_ARG_SEPARATOR = ":"
DIRECTION_SEPARATOR = ","
LEGACY_VARIANTS_META_KEY = "tjs.characters"


def parse_rule_key(key: Any, *, field_name: str = "trigger") -> tuple[str, tuple[str, ...]]:
    """Split ``"onKnocked:right,up"`` into ``("onKnocked", ("right", "up"))``.

    The list form ``["onKnocked", ["right", "up"]]`` is accepted as well.
    """
    if isinstance(key, (list, tuple)):
        if not 1 <= len(key) <= 2:
            raise ValueError(f"{field_name} list must be [trigger] or [trigger, directions]")
        base = key[0]
        tokens = list(key[1]) if len(key) == 2 and key[1] is not None else []
    elif isinstance(key, str):
        base, _, raw_args = key.partition(TRIGGER_ARG_SEPARATOR)
        tokens = [token.strip() for token in raw_args.split(DIRECTION_SEPARATOR)] if raw_args else []
    else:
        raise ValueError(f"{field_name} must be a string or list")

    if not isinstance(base, str):
        raise ValueError(f"{field_name} base trigger must be a string")
    validate_trigger(base, field_name=field_name)

    seen: set[str] = set()
    for token in tokens:
        if not isinstance(token, str):
            raise ValueError(f"{field_name} directions must be strings")
        validate_direction(token, field_name=f"{field_name} direction")
        if token in seen:
            raise ValueError(f"{field_name} repeats direction {token!r}")
        seen.add(token)
    return base, tuple(tokens)


def parse_rule(key: Any, raw: Any, *, field_name: str = "rule") -> tuple[str, Rule]:
    if not isinstance(raw, dict):
        raise ValueError(f"{field_name} must be an object")
    trigger, directions = parse_rule_key(key, field_name=f"{field_name}.trigger")

    raw_actions = raw.get("actions", [])
    if not isinstance(raw_actions, list):
        raise ValueError(f"{field_name}.actions must be a list")
    actions = tuple(
        parse_action(raw_action, field_name=f"{field_name}.actions[{index}]")
        for index, raw_action in enumerate(raw_actions)
    )

    priority = raw.get("priority", 0)
    if not isinstance(priority, int) or isinstance(priority, bool):
        raise ValueError(f"{field_name}.priority must be an integer")

    relative_to = raw.get("relativeTo", RELATIVE_TO_SELF)
    if relative_to not in RELATIVE_FRAMES:
        raise ValueError(f"{field_name}.relativeTo must be one of {sorted(RELATIVE_FRAMES)}")

    mask = direction_mask(directions)
    return trigger, Rule(
        actions=actions,
        priority=priority,
        direction_mask=mask,
        mask_bits=mask_bit_count(mask),
        relative_to=relative_to,
    )


def _raw_rule_rows(raw_events: Any, *, field_name: str) -> Iterable[tuple[Any, Any, str]]:
    if isinstance(raw_events, dict):
        for key, raw in raw_events.items():
            yield key, raw, f"{field_name}[{key!r}]"
        return
    if isinstance(raw_events, list):
        for index, raw in enumerate(raw_events):
            if not isinstance(raw, dict) or "trigger" not in raw:
                raise ValueError(f"{field_name}[{index}] must be an object with a trigger")
            yield raw["trigger"], raw, f"{field_name}[{index}]"
        return
    raise ValueError(f"{field_name} must be an object or a list")


def raw_variants(row: dict[str, Any]) -> Any:
    if "variants" in row:
        return row["variants"]
    meta = row.get("meta")
    if isinstance(meta, dict):
        return meta.get("variants", meta.get(LEGACY_VARIANTS_META_KEY))
    return None


def parse_node_types(raw_node_types: Iterable[Any], *, field_name: str = "node_types") -> tuple[NodeType, ...]:
    """Normalize authored node types into immutable ``NodeType`` records."""
    parsed: list[NodeType] = []
    for index, row in enumerate(raw_node_types):
        row_field = f"{field_name}[{index}]"
        if not isinstance(row, dict):
            raise ValueError(f"{row_field} must be an object")

        type_id = row.get("id")
        if not isinstance(type_id, int) or isinstance(type_id, bool):
            raise ValueError(f"{row_field}.id must be an integer")

        variants = raw_variants(row)
        if not isinstance(variants, list) or not variants:
            raise ValueError(f"{row_field}.variants must be a non-empty list")
        for variant_index, variant in enumerate(variants):
            if not isinstance(variant, str) or not variant:
                raise ValueError(f"{row_field}.variants[{variant_index}] must be a non-empty string")

        events: dict[str, list[Rule]] = {trigger: [] for trigger in BASE_TRIGGERS}
        for key, raw, rule_field in _raw_rule_rows(row.get("events", {}), field_name=f"{row_field}.events"):
            trigger, rule = parse_rule(key, raw, field_name=rule_field)
            events[trigger].append(rule)

        name = row.get("name", "")
        if not isinstance(name, str):
            raise ValueError(f"{row_field}.name must be a string")

        parsed.append(
            NodeType(
                type_id=type_id,
                variants=tuple(variants),
                events={trigger: tuple(rules) for trigger, rules in events.items()},
                name=name,
            )
        )
    return tuple(parsed)
