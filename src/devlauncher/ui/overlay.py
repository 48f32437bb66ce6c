"""Context menu overlays with a single-visible-menu rule."""

from __future__ import annotations

import logging as py_logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

logger = py_logging.getLogger(__name__)

MARGIN = 10

Viewport = Callable[[], tuple[int, int]]


class Overlay(Protocol):
    @property
    def visible(self) -> bool: ...

    def size(self) -> tuple[int, int]: ...

    def show_at(self, x: int, y: int) -> None: ...

    def hide(self) -> None: ...

    def contains(self, x: int, y: int) -> bool: ...


@dataclass(frozen=True)
class MenuItem:
    action: str
    label: str


class ContextMenu:
    """Headless menu surface; GUI adapters mirror its position and visibility."""

    def __init__(
        self,
        items: Sequence[MenuItem],
        *,
        width: int = 180,
        item_height: int = 28,
    ) -> None:
        self.items = tuple(items)
        self.width = width
        self.item_height = item_height
        self.x = 0
        self.y = 0
        self._visible = False

    @property
    def visible(self) -> bool:
        return self._visible

    def size(self) -> tuple[int, int]:
        return self.width, self.item_height * len(self.items)

    def show_at(self, x: int, y: int) -> None:
        self.x = x
        self.y = y
        self._visible = True

    def hide(self) -> None:
        self._visible = False

    def contains(self, x: int, y: int) -> bool:
        width, height = self.size()
        return self.x <= x < self.x + width and self.y <= y < self.y + height

    def item_at(self, x: int, y: int) -> MenuItem | None:
        if not self._visible or not self.contains(x, y):
            return None
        return self.items[(y - self.y) // self.item_height]


def clamp_position(
    x: int,
    y: int,
    size: tuple[int, int],
    viewport: tuple[int, int],
    *,
    margin: int = MARGIN,
) -> tuple[int, int]:
    width, height = size
    viewport_width, viewport_height = viewport
    if x + width > viewport_width:
        x = viewport_width - width - margin
    if y + height > viewport_height:
        y = viewport_height - height - margin
    return max(0, x), max(0, y)


class OverlayManager:
    def __init__(self, viewport: Viewport) -> None:
        self.viewport = viewport
        self._overlays: dict[str, Overlay] = {}
        self._active_id: str | None = None

    @property
    def active_id(self) -> str | None:
        return self._active_id

    def register(self, overlay_id: str, overlay: Overlay) -> None:
        self._overlays[overlay_id] = overlay

    def get(self, overlay_id: str) -> Overlay | None:
        return self._overlays.get(overlay_id)

    def visible_ids(self) -> list[str]:
        return [overlay_id for overlay_id, overlay in self._overlays.items() if overlay.visible]

    def show(self, overlay_id: str, x: int, y: int) -> None:
        self.hide_all()
        overlay = self._overlays.get(overlay_id)
        if overlay is None:
            logger.debug("overlay-show ignored unknown id=%s", overlay_id)
            return
        left, top = clamp_position(x, y, overlay.size(), self.viewport())
        overlay.show_at(left, top)
        self._active_id = overlay_id

    def hide(self, overlay_id: str) -> None:
        overlay = self._overlays.get(overlay_id)
        if overlay is None:
            return
        overlay.hide()
        if self._active_id == overlay_id:
            self._active_id = None

    def hide_all(self) -> None:
        if self._active_id is not None:
            active = self._overlays.get(self._active_id)
            if active is not None:
                active.hide()
            self._active_id = None
        for overlay in self._overlays.values():
            overlay.hide()

    def handle_click(self, x: int, y: int) -> bool:
        """Outside-click listener; True when the active overlay was dismissed."""
        if self._active_id is None:
            return False
        active = self._overlays.get(self._active_id)
        if active is not None and active.contains(x, y):
            return False
        self.hide_all()
        return True
