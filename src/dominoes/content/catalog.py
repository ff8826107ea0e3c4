from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dominoes.content.rule_parser import parse_node_types, raw_variants
from dominoes.sim.direction import ROTATION_MODULUS
from dominoes.sim.node_types import NodeType

CATALOG_SCHEMA_VERSION = 1
DEFAULT_CATALOG_PATH = "content/node_types.json"
MAX_TYPE_ID = 63
MAX_VARIANTS = ROTATION_MODULUS
LEGACY_CATALOG_KEY = "dominos"


@dataclass(frozen=True)
class Catalog:
    schema_version: int
    node_types: tuple[NodeType, ...]

    def by_id(self) -> dict[int, NodeType]:
        return {node_type.type_id: node_type for node_type in self.node_types}

    def by_glyph(self) -> dict[str, tuple[NodeType, int]]:
        glyphs: dict[str, tuple[NodeType, int]] = {}
        for node_type in self.node_types:
            for rotation, glyph in enumerate(node_type.variants):
                glyphs.setdefault(glyph, (node_type, rotation))
        return glyphs


def parse_catalog(raw_types: Any) -> tuple[NodeType, ...]:
    """Validate and parse a list of raw node types, rejecting the whole list on any error."""
    if not isinstance(raw_types, list):
        raise ValueError("node_types must be a list")

    seen_type_ids: set[int] = set()
    for index, row in enumerate(raw_types):
        if not isinstance(row, dict):
            raise ValueError(f"node_types[{index}] must be an object")
        variants = raw_variants(row)
        if not isinstance(variants, list):
            raise ValueError(f"node_types[{index}] is missing its variants list")
        if len(variants) > MAX_VARIANTS:
            raise ValueError(f"node_types[{index}].variants must list at most {MAX_VARIANTS} rotations")
        type_id = row.get("id")
        if not isinstance(type_id, int) or isinstance(type_id, bool) or not 0 <= type_id <= MAX_TYPE_ID:
            raise ValueError(f"node_types[{index}].id must be an integer in [0, {MAX_TYPE_ID}]")
        if type_id in seen_type_ids:
            raise ValueError(f"duplicate node type id: {type_id}")
        seen_type_ids.add(type_id)

    return parse_node_types(raw_types)


def load_catalog_json(path: str | Path) -> Catalog:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return _catalog_from_payload(payload)


def _catalog_from_payload(payload: Any) -> Catalog:
    if not isinstance(payload, dict):
        raise ValueError("node type catalog payload must be an object")

    if LEGACY_CATALOG_KEY in payload and "node_types" not in payload:
        return Catalog(schema_version=CATALOG_SCHEMA_VERSION, node_types=parse_catalog(payload[LEGACY_CATALOG_KEY]))

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("node type catalog must contain integer field: schema_version")
    if schema_version != CATALOG_SCHEMA_VERSION:
        raise ValueError(f"unsupported node type catalog schema_version: {schema_version}")

    return Catalog(schema_version=schema_version, node_types=parse_catalog(payload.get("node_types")))
