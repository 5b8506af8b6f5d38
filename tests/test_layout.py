"""Tests for the force-directed layout."""

import math

import pytest

from relgraph.config import GraphOptions
from relgraph.domain.graph import GraphModel
from relgraph.graph.builder import GraphModelBuilder
from relgraph.graph.layout import ALPHA_MIN, DRAG_ALPHA_TARGET, RESTART_ALPHA, ForceLayout
from relgraph.ingestion.relationship_parser import parse_relationships


def build_model(documents: dict[str, str]) -> GraphModel:
    relationships = [
        rel for doc_id, text in documents.items() for rel in parse_relationships(text, doc_id)
    ]
    return GraphModelBuilder().build([], relationships, set(documents))


@pytest.fixture
def layout() -> ForceLayout:
    return ForceLayout(GraphOptions(), seed=42)


@pytest.fixture
def pair_model() -> GraphModel:
    return build_model({"A": "<<-+>>[[B]]"})


@pytest.fixture
def star_model() -> GraphModel:
    return build_model({"Hub": "<<-+>>[[One]]\n<<-+>>[[Two]]\n<<+->>[[Three]]\n<<++>>[[Four]]"})


def distance(layout: ForceLayout, a: str, b: str) -> float:
    (ax, ay), (bx, by) = layout.position(a), layout.position(b)
    return math.hypot(ax - bx, ay - by)


def test_new_nodes_are_seeded_near_center(layout: ForceLayout, star_model: GraphModel) -> None:
    layout.set_graph(star_model)

    cx, cy = layout.center
    for x, y in layout.positions().values():
        assert abs(x - cx) <= 50
        assert abs(y - cy) <= 50


def test_layout_settles(layout: ForceLayout, star_model: GraphModel) -> None:
    layout.set_graph(star_model)

    ticks = layout.run(max_ticks=1000)

    assert 0 < ticks < 1000
    assert layout.settled
    assert layout.alpha < ALPHA_MIN
    assert not layout.frame()
    assert not layout.running


def test_linked_nodes_settle_near_link_distance(
    layout: ForceLayout, pair_model: GraphModel
) -> None:
    layout.set_graph(pair_model)

    layout.run(max_ticks=1000)

    assert 100 < distance(layout, "A", "B") < 220


def test_nodes_do_not_overlap(layout: ForceLayout, star_model: GraphModel) -> None:
    layout.set_graph(star_model)

    layout.run(max_ticks=1000)

    ids = layout.node_ids
    for i, a in enumerate(ids):
        for b in ids[i + 1 :]:
            assert distance(layout, a, b) > 40


def test_layout_is_centered(layout: ForceLayout, star_model: GraphModel) -> None:
    layout.set_graph(star_model)
    layout.run(max_ticks=1000)

    positions = list(layout.positions().values())
    mean_x = sum(x for x, _ in positions) / len(positions)
    mean_y = sum(y for _, y in positions) / len(positions)
    assert mean_x == pytest.approx(400, abs=5)
    assert mean_y == pytest.approx(300, abs=5)


def test_rebuild_keeps_existing_positions(layout: ForceLayout, pair_model: GraphModel) -> None:
    layout.set_graph(pair_model)
    layout.run(max_ticks=50)
    before = layout.positions()
    velocity = layout.velocity("A")

    changed = layout.set_graph(build_model({"A": "<<-+>>[[B]]\n<<-+>>[[C]]"}))

    assert changed
    assert layout.position("A") == before["A"]
    assert layout.position("B") == before["B"]
    assert layout.velocity("A") == velocity
    assert "C" in layout.positions()
    assert layout.alpha == RESTART_ALPHA


def test_unchanged_graph_does_not_restart(layout: ForceLayout, pair_model: GraphModel) -> None:
    layout.set_graph(pair_model)
    layout.run(max_ticks=1000)
    alpha = layout.alpha

    changed = layout.set_graph(build_model({"A": "<<-+>>[[B]]"}))

    assert not changed
    assert layout.alpha == alpha
    assert layout.settled


def test_removed_nodes_are_dropped(layout: ForceLayout, star_model: GraphModel) -> None:
    layout.set_graph(star_model)

    layout.set_graph(build_model({"Hub": "<<-+>>[[One]]"}))

    assert layout.node_ids == ["Hub", "One"]
    layout.tick()
    assert set(layout.positions()) == {"Hub", "One"}


def test_self_loop_does_not_break_simulation(layout: ForceLayout) -> None:
    layout.set_graph(build_model({"Loop": "<<++>>[[Loop]]\n<<-+>>[[Other]]"}))

    layout.run(max_ticks=1000)

    assert all(math.isfinite(v) for xy in layout.positions().values() for v in xy)


def test_empty_graph_ticks(layout: ForceLayout) -> None:
    layout.set_graph(GraphModel())

    layout.tick(5)

    assert layout.positions() == {}


def test_option_change_reheats(layout: ForceLayout, pair_model: GraphModel) -> None:
    layout.set_graph(pair_model)
    layout.run(max_ticks=1000)

    layout.update_options(GraphOptions(show_labels=False))
    assert layout.settled

    layout.update_options(GraphOptions(link_distance=300))
    assert layout.alpha == RESTART_ALPHA
    layout.run(max_ticks=1000)
    assert distance(layout, "A", "B") > 220


def test_drag_pins_node(layout: ForceLayout, star_model: GraphModel) -> None:
    layout.set_graph(star_model)
    layout.run(max_ticks=1000)

    layout.drag_start("Hub")
    assert layout.is_pinned("Hub")
    assert layout.alpha_target == DRAG_ALPHA_TARGET

    layout.drag_to("Hub", 100.0, 120.0)
    for _ in range(20):
        assert layout.frame()
    assert layout.position("Hub") == (100.0, 120.0)
    assert not layout.settled

    layout.drag_end("Hub")
    assert not layout.is_pinned("Hub")
    assert layout.alpha_target == 0.0
    layout.run(max_ticks=1000)
    assert layout.settled


def test_drag_unknown_node(layout: ForceLayout, pair_model: GraphModel) -> None:
    layout.set_graph(pair_model)

    with pytest.raises(KeyError):
        layout.drag_start("Nobody")
    with pytest.raises(KeyError):
        layout.drag_to("Nobody", 0, 0)
    layout.drag_end("Nobody")
    assert layout.alpha_target == 0.0


def test_tick_callbacks(layout: ForceLayout, pair_model: GraphModel) -> None:
    received: list[dict[str, tuple[float, float]]] = []
    unsubscribe = layout.on_tick(received.append)
    layout.set_graph(pair_model)

    layout.tick()
    layout.tick()
    unsubscribe()
    layout.tick()

    assert len(received) == 2
    assert set(received[0]) == {"A", "B"}


def test_destroy_stops_everything(layout: ForceLayout, pair_model: GraphModel) -> None:
    received: list[dict[str, tuple[float, float]]] = []
    layout.on_tick(received.append)
    layout.set_graph(pair_model)
    before = layout.positions()

    layout.destroy()
    layout.tick()
    layout.restart(1.0)

    assert not layout.running
    assert not layout.frame()
    assert received == []
    assert layout.positions() == before
    assert not layout.set_graph(build_model({"X": "<<-+>>[[Y]]"}))


def test_stop_and_restart(layout: ForceLayout, pair_model: GraphModel) -> None:
    layout.set_graph(pair_model)

    layout.stop()
    assert not layout.frame()

    layout.restart()
    assert layout.frame()


def test_resize_recenters(layout: ForceLayout, pair_model: GraphModel) -> None:
    layout.set_graph(pair_model)
    layout.run(max_ticks=1000)

    layout.resize(400, 200)
    layout.run(max_ticks=1000)

    positions = list(layout.positions().values())
    assert sum(x for x, _ in positions) / 2 == pytest.approx(200, abs=5)
    assert sum(y for _, y in positions) / 2 == pytest.approx(100, abs=5)


def test_node_removed_while_dragged_lets_layout_settle(layout: ForceLayout) -> None:
    layout.set_graph(build_model({"A": "<<-+>>[[B]]\n<<-+>>[[C]]"}))
    layout.run(max_ticks=1000)
    layout.drag_start("C")

    layout.set_graph(build_model({"A": "<<-+>>[[B]]"}))
    assert layout.alpha_target == 0.0
    layout.drag_end("C")

    layout.run(max_ticks=1000)
    assert layout.settled


def test_drag_end_keeps_simulation_warm_while_other_nodes_are_held(
    layout: ForceLayout, star_model: GraphModel
) -> None:
    layout.set_graph(star_model)
    layout.drag_start("One")
    layout.drag_start("Two")

    layout.drag_end("One")
    assert layout.alpha_target == DRAG_ALPHA_TARGET
    assert layout.is_pinned("Two")

    layout.drag_end("Two")
    assert layout.alpha_target == 0.0


def test_removing_one_of_two_held_nodes_keeps_simulation_warm(
    layout: ForceLayout, star_model: GraphModel
) -> None:
    layout.set_graph(star_model)
    layout.drag_start("One")
    layout.drag_start("Two")

    layout.set_graph(build_model({"Hub": "<<-+>>[[One]]"}))

    assert layout.is_pinned("One")
    assert layout.alpha_target == DRAG_ALPHA_TARGET


def test_chunked_forces_match_single_block() -> None:
    model = build_model(
        {
            "Hub": "<<-+>>[[One]]\n<<-+>>[[Two]]\n<<+->>[[Three]]\n<<++>>[[Four]]",
            "One": "<<-+>>[[Five]]\n<<-+>>[[Six]]",
        }
    )
    blocked = ForceLayout(GraphOptions(), seed=11, chunk_rows=2)
    single = ForceLayout(GraphOptions(), seed=11)
    blocked.set_graph(model)
    single.set_graph(model)

    blocked.tick(50)
    single.tick(50)

    assert blocked.node_ids == single.node_ids
    for node_id, (x, y) in single.positions().items():
        bx, by = blocked.position(node_id)
        assert bx == pytest.approx(x, abs=1e-4)
        assert by == pytest.approx(y, abs=1e-4)
