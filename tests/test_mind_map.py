import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from creative_studio.services.element_tree import OutcomeStatus
from creative_studio.services.mind_map import MindMap


@pytest.fixture
def mind_map():
    tree = MindMap()
    tree.add("Themes", node_id="themes")
    tree.add("Grief", parent_id="themes", node_id="grief")
    tree.add("Letting go", parent_id="grief", node_id="letting-go")
    tree.add("Locations", node_id="locations")
    return tree


def test_add_nested_node(mind_map):
    outcome = mind_map.add("Memory", parent_id="grief")

    assert outcome.ok
    assert [child.title for child in mind_map.find("grief").children] == ["Letting go", "Memory"]


def test_add_under_unknown_parent(mind_map):
    assert mind_map.add("Orphan", parent_id="nowhere").status is OutcomeStatus.NOT_FOUND


def test_add_duplicate_id(mind_map):
    assert mind_map.add("Again", node_id="grief").status is OutcomeStatus.DUPLICATE_ID


def test_update_deep_node(mind_map):
    outcome = mind_map.update("letting-go", title="Acceptance", description="Final act beat")

    assert outcome.ok
    node = mind_map.find("letting-go")
    assert node.title == "Acceptance"
    assert node.description == "Final act beat"
    assert mind_map.find("grief").title == "Grief"


def test_delete_locates_node_anywhere(mind_map):
    outcome = mind_map.delete("grief")

    assert outcome.ok
    assert mind_map.find("grief") is None
    assert mind_map.find("letting-go") is None
    assert mind_map.find("themes").children == []
    assert mind_map.delete("grief").status is OutcomeStatus.NOT_FOUND


def test_snapshot_round_trip(mind_map):
    snapshot = mind_map.to_list()

    assert MindMap.from_list(snapshot).to_list() == snapshot
    assert snapshot[0]["children"][0]["children"][0]["title"] == "Letting go"


def test_update_keeps_or_clears_description(mind_map):
    mind_map.update("grief", description="Loss of the lighthouse")
    mind_map.mark_synced()

    mind_map.update("grief", title="Mourning")
    assert mind_map.find("grief").description == "Loss of the lighthouse"
    assert mind_map.dirty

    mind_map.update("grief", description=None)
    assert mind_map.find("grief").description is None
    assert mind_map.find("grief").title == "Mourning"

    mind_map.mark_synced()
    assert not mind_map.dirty
