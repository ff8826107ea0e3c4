from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from dominoes.content.savedata import BoardEntry, decode_binary, decode_tbit, encode_binary, encode_tbit
from dominoes.sim.core import CascadeEngine

SCHEMA_VERSION = 1
CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")
TBIT_SUFFIX = ".tbit"
JSON_SUFFIX = ".json"


def entries_hash(entries: list[BoardEntry]) -> str:
    encoded = json.dumps([list(entry) for entry in entries], separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def _build_board_payload(entries: list[BoardEntry]) -> dict[str, Any]:
    return {
        "schema_version": SCHEMA_VERSION,
        "entries": [list(entry) for entry in entries],
        "entries_hash": entries_hash(entries),
    }


def _entries_from_board_payload(payload: Any) -> list[BoardEntry]:
    if not isinstance(payload, dict):
        raise ValueError("board payload must be an object")
    schema_version = payload.get("schema_version")
    if schema_version != SCHEMA_VERSION:
        raise ValueError(f"unsupported board schema_version: {schema_version}")
    rows = payload.get("entries")
    if not isinstance(rows, list):
        raise ValueError("board payload must contain list field: entries")

    entries: list[BoardEntry] = []
    for index, row in enumerate(rows):
        if not isinstance(row, list) or len(row) != 4:
            raise ValueError(f"entries[{index}] must be a list of four integers")
        if any(not isinstance(value, int) or isinstance(value, bool) for value in row):
            raise ValueError(f"entries[{index}] must be a list of four integers")
        entries.append((row[0], row[1], row[2], row[3]))

    expected_hash = payload.get("entries_hash")
    actual_hash = entries_hash(entries)
    if expected_hash != actual_hash:
        raise ValueError(
            f"entries_hash mismatch while loading board (stored={expected_hash}, recomputed={actual_hash})"
        )
    return entries


def _canonical_json(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload,
        indent=CANONICAL_JSON_INDENT,
        separators=CANONICAL_JSON_SEPARATORS,
        sort_keys=True,
    )


def _write_atomic_bytes(path: str | Path, data: bytes) -> None:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(mode="wb", dir=destination.parent, delete=False, suffix=".tmp") as temp_file:
            temp_file.write(data)
            temp_file.flush()
            os.fsync(temp_file.fileno())
            temp_path = Path(temp_file.name)
        os.replace(temp_path, destination)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


def encode_board_file(path: str | Path, entries: list[BoardEntry]) -> bytes:
    suffix = Path(path).suffix.lower()
    if suffix == TBIT_SUFFIX:
        return encode_tbit(entries).encode("utf-8")
    if suffix == JSON_SUFFIX:
        return _canonical_json(_build_board_payload(entries)).encode("utf-8")
    return encode_binary(entries)


def decode_board_file(path: str | Path, data: bytes) -> list[BoardEntry]:
    suffix = Path(path).suffix.lower()
    if suffix == TBIT_SUFFIX:
        return decode_tbit(data.decode("utf-8"))
    if suffix == JSON_SUFFIX:
        return _entries_from_board_payload(json.loads(data.decode("utf-8")))
    return decode_binary(data)


def write_board_entries(path: str | Path, entries: list[BoardEntry]) -> None:
    _write_atomic_bytes(path, encode_board_file(path, entries))


def read_board_entries(path: str | Path) -> list[BoardEntry]:
    return decode_board_file(path, Path(path).read_bytes())


def save_board(path: str | Path, engine: CascadeEngine) -> None:
    write_board_entries(path, engine.entries())


def load_board(path: str | Path, engine: CascadeEngine) -> int:
    """Decode ``path`` fully, then replace the engine's board; returns the node count.

    A decode error propagates before the board is touched.
    """
    entries = read_board_entries(path)
    engine.load(entries)
    return len(engine.nodes)
