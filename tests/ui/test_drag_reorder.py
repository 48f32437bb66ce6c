from __future__ import annotations

import json
from collections.abc import Callable

import pytest

from devlauncher.config import MemoryPreferences
from devlauncher.models import Project
from devlauncher.preferences import ORDER_KEY
from devlauncher.state import StateStore
from devlauncher.ui.drag import (
    CLEANUP_DELAY_SECONDS,
    DragMarkers,
    DragPhase,
    DragReorderController,
    decode_payload,
    encode_payload,
    order_sequence,
    reorder_names,
)


class _ManualScheduler:
    def __init__(self) -> None:
        self.pending: list[tuple[float, Callable[[], None]]] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> None:
        self.pending.append((delay, callback))

    def flush(self) -> None:
        pending, self.pending = self.pending, []
        for _, callback in pending:
            callback()


def _store(*names: str, order: tuple[str, ...] = ()) -> tuple[StateStore, MemoryPreferences]:
    prefs = MemoryPreferences()
    store = StateStore(prefs)
    store.set_projects(Project(name=name, path=f"/p/{name}") for name in names)
    if order:
        store.set_project_order(order)
    return store, prefs


def _controller(store: StateStore):
    deletes: list[tuple[str, str]] = []
    scheduler = _ManualScheduler()
    controller = DragReorderController(
        store,
        lambda name, path: deletes.append((name, path)),
        schedule=scheduler,
    )
    return controller, deletes, scheduler


@pytest.mark.parametrize(
    ("dragged", "target", "expected"),
    [
        ("x", "z", ["y", "z", "x"]),
        ("z", "x", ["z", "x", "y"]),
        ("x", "y", ["y", "x", "z"]),
        ("y", "x", ["y", "x", "z"]),
    ],
)
def test_reorder_names_moves_into_target_slot(dragged: str, target: str, expected: list[str]) -> None:
    assert reorder_names(["x", "y", "z"], dragged, target) == expected


@pytest.mark.parametrize(("dragged", "target"), [("x", "x"), ("w", "x"), ("x", "w")])
def test_reorder_names_no_op_cases(dragged: str, target: str) -> None:
    assert reorder_names(["x", "y", "z"], dragged, target) is None


def test_payload_roundtrip_and_garbage() -> None:
    assert decode_payload(encode_payload("api", "/p/api")) == {"name": "api", "path": "/p/api"}
    assert decode_payload("not json") is None
    assert decode_payload("[1, 2]") is None
    assert decode_payload('{"name": "", "path": "/p"}') is None
    assert decode_payload('{"name": "a"}') is None


def test_order_sequence_appends_unlisted_display_names() -> None:
    store, _ = _store("c", "a", "b", order=("b", "gone"))

    assert order_sequence(store) == ["b", "gone", "c", "a"]


def test_drop_on_card_reorders_and_persists() -> None:
    store, prefs = _store("x", "y", "z")
    controller, _, _ = _controller(store)

    payload = controller.drag_start("x", "/p/x")
    assert controller.drop_on_card("z", payload) is True

    assert store.order == ("y", "z", "x")
    assert json.loads(prefs.values[ORDER_KEY]) == ["y", "z", "x"]


def test_reorder_keeps_stale_names() -> None:
    store, _ = _store("x", "y", order=("gone", "x", "y"))
    controller, _, _ = _controller(store)

    controller.drop_on_card("x", controller.drag_start("y", "/p/y"))

    assert store.order == ("gone", "y", "x")


def test_drop_on_self_is_a_no_op() -> None:
    store, _ = _store("x", "y")
    controller, _, _ = _controller(store)
    calls: list[int] = []
    store.subscribe(lambda: calls.append(1))

    assert controller.drop_on_card("x", controller.drag_start("x", "/p/x")) is False
    assert calls == []


def test_drop_of_unknown_name_is_a_no_op() -> None:
    store, _ = _store("x", "y")
    controller, _, _ = _controller(store)

    assert controller.drop_on_card("x", controller.drag_start("ghost", "/p/ghost")) is False
    assert store.order == ()


def test_drop_without_active_drag_is_ignored() -> None:
    store, _ = _store("x", "y")
    controller, _, _ = _controller(store)

    assert controller.drop_on_card("y", encode_payload("x", "/p/x")) is False
    assert store.order == ()


def test_drop_with_unreadable_payload_is_ignored() -> None:
    store, _ = _store("x", "y")
    controller, _, _ = _controller(store)
    controller.drag_start("x", "/p/x")

    assert controller.drop_on_card("y", "{broken") is False
    assert store.order == ()


def test_drag_markers_follow_the_gesture() -> None:
    store, _ = _store("x", "y")
    controller, _, scheduler = _controller(store)

    controller.drag_start("x", "/p/x")
    assert controller.phase == DragPhase.DRAGGING
    assert controller.markers == DragMarkers(dragging="x", trash_visible=True)

    assert controller.drag_over_card("y") is True
    assert controller.markers.drop_target == "y"
    assert controller.phase == DragPhase.HOVER_CARD

    assert controller.drag_over_trash() is True
    assert controller.markers.trash_hover is True
    assert controller.phase == DragPhase.HOVER_TRASH

    assert controller.drag_over_nowhere() is False
    assert controller.markers.trash_hover is False
    assert controller.phase == DragPhase.HOVER_NOWHERE

    controller.drag_end()
    assert controller.phase == DragPhase.IDLE
    assert controller.active is False
    assert [delay for delay, _ in scheduler.pending] == [CLEANUP_DELAY_SECONDS]
    assert controller.markers.dragging == "x"

    scheduler.flush()
    assert controller.markers == DragMarkers()


def test_hovering_own_card_sets_no_drop_target() -> None:
    store, _ = _store("x", "y")
    controller, _, _ = _controller(store)
    controller.drag_start("x", "/p/x")

    controller.drag_over_card("x")

    assert controller.markers.drop_target == ""


def test_cleanup_is_skipped_when_a_new_drag_started() -> None:
    store, _ = _store("x", "y")
    controller, _, scheduler = _controller(store)

    controller.drag_start("x", "/p/x")
    controller.drag_end()
    controller.drag_start("y", "/p/y")
    scheduler.flush()

    assert controller.markers.dragging == "y"


def test_drop_on_trash_requests_confirmation_without_deleting() -> None:
    store, _ = _store("x", "y")
    controller, deletes, _ = _controller(store)

    payload = controller.drag_start("x", "/p/x")
    assert controller.drop_on_trash(payload) is True

    assert deletes == [("x", "/p/x")]
    assert [project.name for project in store.projects] == ["x", "y"]
    assert controller.markers.trash_visible is False


def test_drop_on_trash_with_bad_payload() -> None:
    store, _ = _store("x")
    controller, deletes, _ = _controller(store)

    assert controller.drop_on_trash("") is False
    assert deletes == []


def test_default_scheduler_runs_immediately_without_loop() -> None:
    store, _ = _store("x")
    controller = DragReorderController(store, lambda name, path: None)

    controller.drag_start("x", "/p/x")
    controller.drag_end()

    assert controller.markers == DragMarkers()
