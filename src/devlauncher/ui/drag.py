"""Drag gestures over project cards: manual reordering and drag-to-delete."""

from __future__ import annotations

import asyncio
import json
import logging as py_logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from typing_extensions import TypedDict

from devlauncher.state import StateStore
from devlauncher.ui.render import sort_projects

logger = py_logging.getLogger(__name__)

CLEANUP_DELAY_SECONDS = 0.01

Scheduler = Callable[[float, Callable[[], None]], object]
ConfirmDelete = Callable[[str, str], None]


class DragPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVER_CARD = "hover-card"
    HOVER_TRASH = "hover-trash"
    HOVER_NOWHERE = "hover-nowhere"


class DragPayload(TypedDict):
    name: str
    path: str


@dataclass(frozen=True)
class DragMarkers:
    dragging: str = ""
    drop_target: str = ""
    trash_visible: bool = False
    trash_hover: bool = False


def encode_payload(name: str, path: str) -> str:
    return json.dumps(DragPayload(name=name, path=path))


def decode_payload(raw: str) -> DragPayload | None:
    try:
        data = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        return None
    if not isinstance(data, dict):
        return None
    name = data.get("name")
    path = data.get("path")
    if not isinstance(name, str) or not isinstance(path, str) or not name:
        return None
    return DragPayload(name=name, path=path)


def reorder_names(sequence: Sequence[str], dragged: str, target: str) -> list[str] | None:
    """Move ``dragged`` into the slot ``target`` occupied before the move.

    Returns ``None`` when nothing should change: same name, or either name
    missing from ``sequence``.
    """
    if dragged == target:
        return None
    names = list(sequence)
    if dragged not in names or target not in names:
        return None
    target_index = names.index(target)
    names.remove(dragged)
    names.insert(target_index, dragged)
    return names


def order_sequence(store: StateStore) -> list[str]:
    """Explicit order, completed with the displayed names it does not mention yet."""
    sequence = list(store.order)
    known = set(sequence)
    for project in sort_projects(store.projects, store.order):
        if project.name not in known:
            known.add(project.name)
            sequence.append(project.name)
    return sequence


def call_later(delay: float, callback: Callable[[], None]) -> object:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        callback()
        return None
    return loop.call_later(delay, callback)


class DragReorderController:
    def __init__(
        self,
        store: StateStore,
        confirm_delete: ConfirmDelete,
        *,
        schedule: Scheduler = call_later,
    ) -> None:
        self.store = store
        self.confirm_delete = confirm_delete
        self.schedule = schedule
        self.phase = DragPhase.IDLE
        self._source: DragPayload | None = None
        self._markers = DragMarkers()

    @property
    def markers(self) -> DragMarkers:
        return self._markers

    @property
    def active(self) -> bool:
        return self._source is not None

    def drag_start(self, name: str, path: str) -> str:
        self._source = DragPayload(name=name, path=path)
        self.phase = DragPhase.DRAGGING
        self._markers = DragMarkers(dragging=name, trash_visible=True)
        logger.debug("drag-start name=%s", name)
        return encode_payload(name, path)

    def drag_over_card(self, name: str) -> bool:
        if self._source is None:
            return True
        self.phase = DragPhase.HOVER_CARD
        drop_target = name if name != self._source["name"] else ""
        self._markers = DragMarkers(
            dragging=self._markers.dragging,
            drop_target=drop_target or self._markers.drop_target,
            trash_visible=True,
        )
        return True

    def drag_over_trash(self) -> bool:
        if self._source is not None:
            self.phase = DragPhase.HOVER_TRASH
            self._markers = DragMarkers(
                dragging=self._markers.dragging,
                drop_target=self._markers.drop_target,
                trash_visible=True,
                trash_hover=True,
            )
        return True

    def drag_over_nowhere(self) -> bool:
        if self._source is None:
            return True
        self.phase = DragPhase.HOVER_NOWHERE
        self._markers = DragMarkers(
            dragging=self._markers.dragging,
            drop_target=self._markers.drop_target,
            trash_visible=True,
        )
        return False

    def drop_on_card(self, target_name: str, payload: str) -> bool:
        data = decode_payload(payload)
        self._markers = DragMarkers(
            dragging=self._markers.dragging,
            trash_visible=self._markers.trash_visible,
        )
        if data is None:
            logger.debug("drop-card ignored: unreadable payload")
            return False
        if self._source is None or data["name"] == target_name:
            return False
        reordered = reorder_names(order_sequence(self.store), data["name"], target_name)
        if reordered is None:
            logger.debug("drop-card no-op dragged=%s target=%s", data["name"], target_name)
            return False
        logger.info("Reordered project=%s onto=%s", data["name"], target_name)
        self.store.set_project_order(reordered)
        return True

    def drop_on_trash(self, payload: str) -> bool:
        self._markers = DragMarkers(dragging=self._markers.dragging)
        data = decode_payload(payload)
        if data is None:
            logger.warning("drop-trash ignored: unreadable payload")
            return False
        logger.info("Requesting delete confirmation for project=%s", data["name"])
        self.confirm_delete(data["name"], data["path"])
        return True

    def drag_end(self) -> None:
        self._source = None
        self.phase = DragPhase.IDLE
        self.schedule(CLEANUP_DELAY_SECONDS, self._clear_markers)

    def _clear_markers(self) -> None:
        if self._source is None:
            self._markers = DragMarkers()
