from __future__ import annotations

from collections.abc import Iterable, Sequence

BoardEntry = tuple[int, int, int, int]

BINARY_RECORD_SIZE = 5
TYPE_ID_BITS = 6
COORD_BITS = 16
ROTATION_BITS = 2
TBIT_SEPARATOR = ","
TBIT_FIELDS = 4

_TYPE_ID_MASK = (1 << TYPE_ID_BITS) - 1
_COORD_MASK = (1 << COORD_BITS) - 1
_ROTATION_MASK = (1 << ROTATION_BITS) - 1
_COORD_MIN = -(1 << (COORD_BITS - 1))
_COORD_MAX = (1 << (COORD_BITS - 1)) - 1


def _signed16(value: int) -> int:
    return value - (1 << COORD_BITS) if value & (1 << (COORD_BITS - 1)) else value


def _validate_entry(entry: Sequence[int], *, index: int) -> BoardEntry:
    if len(entry) != 4:
        raise ValueError(f"entries[{index}] must be a (type_id, x, y, rotation) quad")
    type_id, x, y, rotation = (int(value) for value in entry)
    if not 0 <= type_id <= _TYPE_ID_MASK:
        raise ValueError(f"entries[{index}] type_id {type_id} does not fit in {TYPE_ID_BITS} bits")
    if not _COORD_MIN <= x <= _COORD_MAX or not _COORD_MIN <= y <= _COORD_MAX:
        raise ValueError(f"entries[{index}] coordinate ({x}, {y}) does not fit in signed {COORD_BITS} bits")
    if not 0 <= rotation <= _ROTATION_MASK:
        raise ValueError(f"entries[{index}] rotation {rotation} does not fit in {ROTATION_BITS} bits")
    return (type_id, x, y, rotation)


def encode_binary(entries: Iterable[Sequence[int]]) -> bytes:
    """Pack each entry into 40 big-endian bits: type id, x, y (two's complement), rotation."""
    out = bytearray()
    for index, entry in enumerate(entries):
        type_id, x, y, rotation = _validate_entry(entry, index=index)
        packed = type_id
        packed = (packed << COORD_BITS) | (x & _COORD_MASK)
        packed = (packed << COORD_BITS) | (y & _COORD_MASK)
        packed = (packed << ROTATION_BITS) | rotation
        out.extend(packed.to_bytes(BINARY_RECORD_SIZE, byteorder="big"))
    return bytes(out)


def decode_binary(data: bytes) -> list[BoardEntry]:
    if len(data) % BINARY_RECORD_SIZE != 0:
        raise ValueError(f"corrupted save data: length {len(data)} is not a multiple of {BINARY_RECORD_SIZE}")

    entries: list[BoardEntry] = []
    for offset in range(0, len(data), BINARY_RECORD_SIZE):
        packed = int.from_bytes(data[offset : offset + BINARY_RECORD_SIZE], byteorder="big")
        rotation = packed & _ROTATION_MASK
        packed >>= ROTATION_BITS
        y = _signed16(packed & _COORD_MASK)
        packed >>= COORD_BITS
        x = _signed16(packed & _COORD_MASK)
        packed >>= COORD_BITS
        entries.append((packed & _TYPE_ID_MASK, x, y, rotation))
    return entries


def encode_tbit(entries: Iterable[Sequence[int]]) -> str:
    """Comma-separated decimal quads with a trailing comma; y is stored negated."""
    tokens: list[str] = []
    for index, entry in enumerate(entries):
        if len(entry) != 4:
            raise ValueError(f"entries[{index}] must be a (type_id, x, y, rotation) quad")
        type_id, x, y, rotation = (int(value) for value in entry)
        tokens.extend((str(type_id), str(x), str(-y), str(rotation)))
    return "".join(f"{token}{TBIT_SEPARATOR}" for token in tokens)


def decode_tbit(text: str) -> list[BoardEntry]:
    tokens = [token.strip() for token in text.strip().split(TBIT_SEPARATOR)]
    if tokens and tokens[-1] == "":
        tokens.pop()

    values: list[int] = []
    for index, token in enumerate(tokens):
        try:
            values.append(int(token))
        except ValueError:
            raise ValueError(f"corrupted tbit data: token {index} ({token!r}) is not an integer") from None
    if len(values) % TBIT_FIELDS != 0:
        raise ValueError(f"corrupted tbit data: {len(values)} values is not a multiple of {TBIT_FIELDS}")

    return [
        (values[index], values[index + 1], -values[index + 2], values[index + 3])
        for index in range(0, len(values), TBIT_FIELDS)
    ]
