import pytest

from usbsorter.services.detector import ChangeDetector, divergence_point
from usbsorter.services.model import OrderModel


def _level(names):
    model = OrderModel("/vol")
    ids = {name: model.add_node(name, model.root) for name in names}
    model.mark_applied(model.root)
    return model, ids


def _flagged(model):
    return {model.node(node_id).name for node_id in model.pending_moves()}


def test_divergence_point() -> None:
    assert divergence_point("abcd", "abcd") is None
    assert divergence_point("abcd", "acbd") == 1
    assert divergence_point("abcd", "dabc") == 0
    assert divergence_point("abc", "abcd") == 3


def test_sort_flags_everything_from_divergence_point() -> None:
    model, ids = _level("abcd")
    new = [ids[name] for name in "acbd"]
    previous = model.reorder(model.root, new)

    flagged = ChangeDetector(model).record_sort(model.root, previous, new)

    assert [model.node(node_id).name for node_id in flagged] == ["c", "b", "d"]
    assert _flagged(model) == {"b", "c", "d"}
    assert not model.node(ids["a"]).moved


def test_sort_back_to_disk_order_clears_stale_flags() -> None:
    model, ids = _level("abcd")
    detector = ChangeDetector(model)
    model.move_child(model.root, 3, 0)
    detector.record_drag(model.root, ids["d"])

    original = [ids[name] for name in "abcd"]
    previous = model.reorder(model.root, original)
    flagged = detector.record_sort(model.root, previous, original)

    assert flagged == []
    assert _flagged(model) == set()


def test_sort_recomputes_against_disk_not_previous_edit() -> None:
    model, ids = _level("abcd")
    detector = ChangeDetector(model)
    model.move_child(model.root, 3, 0)  # d a b c
    detector.record_drag(model.root, ids["d"])

    new = [ids[name] for name in "dacb"]
    previous = model.reorder(model.root, new)
    detector.record_sort(model.root, previous, new)

    # Against the previous edit the change starts at "c", but disk still reads a b c d.
    assert _flagged(model) == {"d", "a", "c", "b"}


def test_sort_without_baseline_keeps_earlier_flags() -> None:
    model, ids = _level("abcd")
    model.forget_applied(model.root)
    model.node(ids["a"]).moved = True
    new = [ids[name] for name in "abdc"]
    previous = model.reorder(model.root, new)

    ChangeDetector(model).record_sort(model.root, previous, new)

    assert _flagged(model) == {"a", "c", "d"}


def test_drag_flags_only_moved_entry() -> None:
    model, ids = _level("abcd")
    moved = model.move_child(model.root, 1, 3)

    flagged = ChangeDetector(model).record_drag(model.root, moved)

    assert flagged == [ids["b"]]
    assert _flagged(model) == {"b"}


def test_orders_must_list_same_entries() -> None:
    model, ids = _level("abc")
    detector = ChangeDetector(model)

    with pytest.raises(ValueError):
        detector.record_sort(model.root, [ids["a"], ids["b"], ids["c"]], [ids["a"], ids["b"]])

    other = model.add_node("x", ids["a"])
    with pytest.raises(ValueError):
        detector.record_drag(model.root, other)
