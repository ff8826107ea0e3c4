from __future__ import annotations

from collections.abc import Iterable

DIRECTIONS: tuple[str, ...] = ("right", "up", "left", "down")
ROTATION_MODULUS = len(DIRECTIONS)

DIRECTION_OFFSETS: dict[str, tuple[int, int]] = {
    "right": (1, 0),
    "up": (0, -1),
    "left": (-1, 0),
    "down": (0, 1),
}

DIRECTION_BITS: dict[str, int] = {direction: 1 << index for index, direction in enumerate(DIRECTIONS)}


def validate_direction(direction: str, *, field_name: str = "direction") -> str:
    if direction not in DIRECTION_BITS:
        raise ValueError(f"{field_name} must be one of {list(DIRECTIONS)}; got {direction!r}")
    return direction


def rotate(direction: str, steps: int) -> str:
    """Turn ``direction`` by ``steps`` quarter turns through right -> up -> left -> down."""
    validate_direction(direction)
    return DIRECTIONS[(DIRECTIONS.index(direction) + steps) % ROTATION_MODULUS]


def direction_index(direction: str) -> int:
    return DIRECTIONS.index(validate_direction(direction))


def step(position: tuple[int, int], direction: str) -> tuple[int, int]:
    dx, dy = DIRECTION_OFFSETS[validate_direction(direction)]
    return (position[0] + dx, position[1] + dy)


def direction_mask(directions: Iterable[str]) -> int:
    mask = 0
    for direction in directions:
        mask |= DIRECTION_BITS[validate_direction(direction)]
    return mask


def mask_bit_count(mask: int) -> int:
    return bin(mask).count("1")


def direction_from_mask(mask: int) -> str | None:
    """Return the single direction encoded by ``mask``, or None when it is not exactly one bit."""
    if mask <= 0 or mask & (mask - 1):
        return None
    index = mask.bit_length() - 1
    if index >= ROTATION_MODULUS:
        return None
    return DIRECTIONS[index]
