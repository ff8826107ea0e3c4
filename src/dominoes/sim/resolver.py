from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from dominoes.sim.direction import direction_from_mask
from dominoes.sim.node_types import Rule


@dataclass(frozen=True)
class ResolvedRule:
    rule: Rule
    trigger: str | None
    rule_index: int
    signal_mask: int
    direction: str | None


def rule_is_eligible(rule: Rule, signal_mask: int) -> bool:
    """Wildcard rules match any signal; masked rules need exactly the signaled directions."""
    return rule.direction_mask == 0 or rule.direction_mask == signal_mask


def resolve_event(
    rules_by_trigger: Mapping[str, Iterable[Rule]],
    signals: Iterable[tuple[str, int]],
) -> ResolvedRule | None:
    """Pick the single best rule for the accumulated ``(trigger, mask)`` signals.

    Higher priority wins; equal priority prefers the rule with more required
    directions. Remaining ties keep the first rule found in scan order.
    """
    best: ResolvedRule | None = None
    for trigger, signal_mask in signals:
        for rule_index, rule in enumerate(rules_by_trigger.get(trigger, ())):
            if not rule_is_eligible(rule, signal_mask):
                continue
            if best is not None:
                if rule.priority < best.rule.priority:
                    continue
                if rule.priority == best.rule.priority and rule.mask_bits <= best.rule.mask_bits:
                    continue
            best = ResolvedRule(
                rule=rule,
                trigger=trigger,
                rule_index=rule_index,
                signal_mask=signal_mask,
                direction=direction_from_mask(signal_mask),
            )
    return best
