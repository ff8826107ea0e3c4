from __future__ import annotations

NODE_STATE_STANDING = "standing"
NODE_STATE_FALLING = "falling"
NODE_STATE_FALLEN = "fallen"
NODE_STATE_UNFALLING = "unfalling"

NODE_STATES = {
    NODE_STATE_STANDING,
    NODE_STATE_FALLING,
    NODE_STATE_FALLEN,
    NODE_STATE_UNFALLING,
}

# Transitional states settle into these one tick after they are entered.
SETTLED_STATE_AFTER = {
    NODE_STATE_FALLING: NODE_STATE_FALLEN,
    NODE_STATE_UNFALLING: NODE_STATE_STANDING,
}


def validate_node_state(state: str, *, field_name: str = "state") -> str:
    if state not in NODE_STATES:
        raise ValueError(f"{field_name} must be one of {sorted(NODE_STATES)}; got {state!r}")
    return state
