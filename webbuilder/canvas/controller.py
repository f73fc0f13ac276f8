"""
Translates editor gestures (drag from the sidebar, drag to reorder, clicks)
into element tree operations.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from .catalog import ElementCatalog
from .models import ElementNode
from .tree import ElementTree

logger = logging.getLogger(__name__)

Snapshot = List[ElementNode]
Listener = Callable[[Snapshot], None]


class CanvasController:
    """
    Owns the selected element id; the tree is the single source of truth.

    Every structural change returns the new top-level snapshot and hands the
    same snapshot to subscribed listeners (the UI layer).
    """

    def __init__(self, tree: ElementTree, catalog: Optional[ElementCatalog] = None):
        self.tree = tree
        self.catalog = catalog or tree.catalog
        self.selected_id: Optional[str] = None
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------
    # DRAG AND DROP
    # -------------------------

    def on_drag_from_catalog(self, catalog_type: str, target_parent_id: Optional[str],
                             target_index: int) -> Snapshot:
        node = self.catalog.instantiate(catalog_type)
        self.tree.insert(target_parent_id, target_index, node)
        logger.info("Dropped new %s into %s at %d", catalog_type, target_parent_id or "page", target_index)
        return self._emit()

    def on_drag_reorder(self, moved_id: str, target_parent_id: Optional[str],
                        target_index: int) -> Snapshot:
        current_parent_id, _ = self.tree.location(moved_id)
        if target_parent_id == current_parent_id:
            self.tree.move_within_siblings(moved_id, target_index)
        else:
            self.tree.move(moved_id, target_parent_id, target_index)
        return self._emit()

    # -------------------------
    # SELECTION
    # -------------------------

    def select(self, element_id: Optional[str]) -> None:
        # clicks can race with tree edits, so unknown ids are ignored
        if element_id is None or element_id in self.tree:
            self.selected_id = element_id

    def selected_element(self) -> Optional[ElementNode]:
        if self.selected_id is None:
            return None
        return self.tree.find(self.selected_id)

    # -------------------------
    # PROPERTIES PANEL
    # -------------------------

    def update_element(self, element_id: str, props: Optional[Dict[str, Any]] = None,
                       style: Optional[Dict[str, Any]] = None) -> Snapshot:
        self.tree.update(element_id, props=props, style=style)
        return self._emit()

    def delete_element(self, element_id: str) -> Snapshot:
        removed = self.tree.remove(element_id)
        if self.selected_id is not None and any(n.id == self.selected_id for n in removed):
            self.selected_id = None
        return self._emit()

    def duplicate_element(self, element_id: str) -> Snapshot:
        self.tree.duplicate(element_id)
        return self._emit()

    def _emit(self) -> Snapshot:
        snapshot = self.tree.elements
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot
