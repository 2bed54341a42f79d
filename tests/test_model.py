from pathlib import Path

import pytest

from usbsorter.services.model import OrderModel


@pytest.fixture
def model() -> OrderModel:
    model = OrderModel(Path("/vol"))
    music = model.add_node("music", model.root)
    model.add_node("rock", music)
    model.add_node("jazz", music)
    model.add_node("podcasts", model.root)
    return model


def test_paths_are_rebuilt_from_parents(model) -> None:
    music = model.find(Path("/vol/music"))
    jazz = model.find(Path("/vol/music/jazz"))

    assert model.path_of(model.root) == Path("/vol")
    assert model.path_of(jazz) == Path("/vol/music/jazz")
    assert model.depth(jazz) == 2
    assert model.node(jazz).parent == music
    assert model.find(Path("/vol/missing")) is None
    assert model.find(Path("/elsewhere")) is None


def test_paths_follow_renamed_parent(model) -> None:
    music = model.find(Path("/vol/music"))
    rock = model.find(Path("/vol/music/rock"))

    model.node(music).name = "Music"

    assert model.path_of(rock) == Path("/vol/Music/rock")


def test_walk_is_depth_first_in_desired_order(model) -> None:
    music = model.find(Path("/vol/music"))
    model.reorder(music, model.sorted_children(music))

    names = [model.node(node_id).name for node_id in model.walk()]

    assert names == ["vol", "music", "jazz", "rock", "podcasts"]


def test_reorder_returns_previous_and_rejects_other_entries(model) -> None:
    children = model.children(model.root)

    previous = model.reorder(model.root, list(reversed(children)))

    assert previous == children
    assert model.child_names(model.root) == ["podcasts", "music"]
    with pytest.raises(ValueError):
        model.reorder(model.root, children[:1])


def test_move_child(model) -> None:
    music = model.find(Path("/vol/music"))

    moved = model.move_child(music, 0, 1)

    assert model.node(moved).name == "rock"
    assert model.child_names(music) == ["jazz", "rock"]
    with pytest.raises(IndexError):
        model.move_child(music, 0, 2)


def test_sorted_children_is_case_insensitive(model) -> None:
    model.add_node("Audiobooks", model.root)

    ordered = model.sorted_children(model.root)
    reverse = model.sorted_children(model.root, reverse=True)

    assert [model.node(c).name for c in ordered] == ["Audiobooks", "music", "podcasts"]
    assert [model.node(c).name for c in reverse] == ["podcasts", "music", "Audiobooks"]


def test_applied_baseline(model) -> None:
    assert model.applied_order(model.root) is None

    model.mark_applied(model.root)
    snapshot = model.applied_order(model.root)
    model.reorder(model.root, list(reversed(model.children(model.root))))

    assert snapshot == model.applied_order(model.root)
    assert snapshot != model.children(model.root)
    model.forget_applied(model.root)
    assert model.applied_order(model.root) is None


def test_pending_moves(model) -> None:
    assert not model.has_pending_moves()

    jazz = model.find(Path("/vol/music/jazz"))
    model.node(jazz).moved = True

    assert model.has_pending_moves()
    assert model.pending_moves() == [jazz]
