from __future__ import annotations

import hashlib
import json
from typing import Any

from dominoes.sim.core import CascadeEngine


def board_payload(engine: CascadeEngine) -> dict[str, Any]:
    return {
        "tick": engine.tick_count,
        "nodes": [
            {
                "type_id": node.node_type.type_id,
                "x": node.position[0],
                "y": node.position[1],
                "rotation": node.rotation,
                "state": node.state,
            }
            for node in sorted(engine.nodes.values(), key=lambda current: (current.position[1], current.position[0]))
        ],
        "pending": sorted(
            [
                {
                    "x": entry.node.position[0],
                    "y": entry.node.position[1],
                    "signals": dict(sorted(entry.signals.items())),
                    "explicit": entry.is_explicit,
                    "mode": entry.mode,
                }
                for _, entry in engine.pending_entries()
            ],
            key=lambda row: (row["y"], row["x"], row["explicit"]),
        ),
    }


def board_hash(engine: CascadeEngine) -> str:
    """Digest of positions, states and pending work; node ids are left out."""
    encoded = json.dumps(board_payload(engine), sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()
