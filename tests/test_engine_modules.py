from dominoes.content.catalog import DEFAULT_CATALOG_PATH, load_catalog_json
from dominoes.sim.core import CascadeEngine, Node
from dominoes.sim.modules import EngineModule
from dominoes.sim.resolver import ResolvedRule


class RecordingModule(EngineModule):
    def __init__(self, name: str, calls: list[str]) -> None:
        self.name = name
        self.calls = calls

    def on_engine_start(self, engine: CascadeEngine) -> None:
        self.calls.append(f"{self.name}:engine_start")

    def on_tick_start(self, engine: CascadeEngine, tick: int) -> None:
        self.calls.append(f"{self.name}:tick_start:{tick}")

    def on_tick_end(self, engine: CascadeEngine, tick: int) -> None:
        self.calls.append(f"{self.name}:tick_end:{tick}")

    def on_rule_executed(self, engine: CascadeEngine, node: Node, resolved: ResolvedRule, mode: str) -> None:
        self.calls.append(f"{self.name}:rule:{node.node_id}:{resolved.trigger}:{mode}")


def _build_engine() -> CascadeEngine:
    return CascadeEngine(load_catalog_json(DEFAULT_CATALOG_PATH).node_types)


def test_module_tick_ordering() -> None:
    engine = _build_engine()
    calls: list[str] = []

    engine.register_module(RecordingModule(name="A", calls=calls))
    engine.register_module(RecordingModule(name="B", calls=calls))

    engine.advance_ticks(1)

    assert calls == [
        "A:engine_start",
        "B:engine_start",
        "A:tick_start:0",
        "B:tick_start:0",
        "A:tick_end:0",
        "B:tick_end:0",
    ]


def test_module_sees_every_executed_rule() -> None:
    engine = _build_engine()
    calls: list[str] = []
    engine.add_node("|", 0, 0)
    node = engine.node_at(0, 0)
    engine.register_module(RecordingModule(name="A", calls=calls))
    calls.clear()

    engine.queue_event(node.node_id, node, "onKnocked", "right")
    engine.advance_ticks(2)

    assert calls == [
        "A:tick_start:0",
        f"A:rule:{node.node_id}:onKnocked:normal",
        "A:tick_end:0",
        "A:tick_start:1",
        f"A:rule:{node.node_id}:None:normal",
        "A:tick_end:1",
    ]


def test_get_module_by_name() -> None:
    engine = _build_engine()
    module = RecordingModule(name="recorder", calls=[])
    engine.register_module(module)

    assert engine.get_module("recorder") is module
    assert engine.get_module("missing") is None
