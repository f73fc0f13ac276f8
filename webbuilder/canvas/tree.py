"""
Element tree for a single page.

The page owns an ordered list of top-level nodes; every container node owns its
children. Mutations are applied copy-on-write: the branch leading to the
changed node is rebuilt and the top-level list is swapped in one assignment, so
snapshots handed out earlier never change and no observer sees a half-applied
operation.
"""

import copy
import logging
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

from ..errors import (
    CyclicMoveError,
    DuplicateElementIdError,
    InvalidParentError,
    NotFoundError,
)
from .catalog import ElementCatalog
from .models import ElementNode, NodePatch, new_element_id
from .schema import validate_page

logger = logging.getLogger(__name__)

Siblings = List[ElementNode]


class ElementTree:

    def __init__(self, catalog: ElementCatalog, elements: Optional[List[ElementNode]] = None):
        self.catalog = catalog
        self._roots: Siblings = []
        if elements:
            self.load(elements)

    # ============================================
    # Queries
    # ============================================

    @property
    def elements(self) -> Siblings:
        """ Snapshot of the top-level sequence. """
        return list(self._roots)

    def find(self, element_id: str) -> Optional[ElementNode]:
        return _find(self._roots, element_id)

    def get(self, element_id: str) -> ElementNode:
        node = self.find(element_id)
        if node is None:
            raise NotFoundError(element_id)
        return node

    def location(self, element_id: str) -> Tuple[Optional[str], int]:
        """ (parent id, index among siblings) of a node. """
        found = _locate(self._roots, element_id, None)
        if found is None:
            raise NotFoundError(element_id)
        parent_id, index, _ = found
        return parent_id, index

    def is_descendant(self, ancestor_id: str, element_id: str) -> bool:
        """ True if ``element_id`` lies strictly below ``ancestor_id``. """
        ancestor = self.get(ancestor_id)
        return any(node.id == element_id for node in ancestor.walk() if node is not ancestor)

    def walk(self) -> Iterator[ElementNode]:
        for root in self._roots:
            yield from root.walk()

    def ids(self) -> Set[str]:
        return {node.id for node in self.walk()}

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())

    def __contains__(self, element_id: str) -> bool:
        return self.find(element_id) is not None

    # ============================================
    # Mutations
    # ============================================

    def insert(self, parent_id: Optional[str], index: int, node: ElementNode) -> ElementNode:
        """
        Insert ``node`` (and any subtree it carries) under ``parent_id``.

        ``None`` inserts at the top level. The index is clamped to the valid
        range. The tree stores a copy: keep working with the returned node, which
        has ``parent_id`` set. Later changes to ``node`` itself never reach the tree.
        """
        self._roots, linked = self._insert_into(self._roots, parent_id, index, node)
        logger.debug("Inserted %s under %s", linked.id, parent_id)
        return linked

    def move_within_siblings(self, element_id: str, new_index: int) -> None:
        found = _locate(self._roots, element_id, None)
        if found is None:
            raise NotFoundError(element_id)
        parent_id, index, siblings = found

        new_index = _clamp(new_index, 0, len(siblings) - 1)
        if new_index == index:
            return

        def reorder(nodes: Siblings) -> Siblings:
            out = list(nodes)
            moved = out.pop(index)
            out.insert(new_index, moved)
            return out

        self._roots = _rewrite_siblings(self._roots, parent_id, reorder)
        logger.debug("Moved %s from index %d to %d", element_id, index, new_index)

    def move(self, element_id: str, parent_id: Optional[str], index: int) -> ElementNode:
        """
        Move a node to another parent (remove then insert).

        Both steps run against a working copy of the tree which replaces the
        current one only when the insert succeeds; on any error the node stays
        where it was.
        """
        found = _locate(self._roots, element_id, None)
        if found is None:
            raise NotFoundError(element_id)
        old_parent_id, old_index, siblings = found

        if parent_id == old_parent_id:
            self.move_within_siblings(element_id, index)
            return self.get(element_id)

        node = siblings[old_index]
        if parent_id is not None and (
            parent_id == element_id or any(n.id == parent_id for n in node.walk())
        ):
            raise CyclicMoveError(element_id, parent_id)

        working = _rewrite_siblings(
            self._roots, old_parent_id, lambda nodes: nodes[:old_index] + nodes[old_index + 1:]
        )
        working, linked = self._insert_into(working, parent_id, index, node)
        self._roots = working
        logger.debug("Moved %s from %s to %s", element_id, old_parent_id, parent_id)
        return linked

    def update(self, element_id: str, patch: Optional[NodePatch] = None, *,
               props: Optional[Dict[str, Any]] = None,
               style: Optional[Dict[str, Any]] = None) -> ElementNode:
        """ Shallow-merge new props/style into a node; later keys win. """
        patch = patch or NodePatch()
        node = self.get(element_id)
        updated = replace(
            node,
            props={**node.props, **patch.props, **(props or {})},
            style={**node.style, **patch.style, **(style or {})},
        )
        self._roots = _rewrite(self._roots, element_id, lambda _: updated)
        return updated

    def remove(self, element_id: str) -> List[ElementNode]:
        """ Remove a node and its subtree. Returns the removed nodes, root first. """
        found = _locate(self._roots, element_id, None)
        if found is None:
            raise NotFoundError(element_id)
        parent_id, index, siblings = found

        removed = list(siblings[index].walk())
        self._roots = _rewrite_siblings(
            self._roots, parent_id, lambda nodes: nodes[:index] + nodes[index + 1:]
        )
        logger.debug("Removed %s (%d nodes)", element_id, len(removed))
        return removed

    def duplicate(self, element_id: str) -> ElementNode:
        """ Deep copy of a subtree with fresh ids, placed right after the original. """
        found = _locate(self._roots, element_id, None)
        if found is None:
            raise NotFoundError(element_id)
        parent_id, index, siblings = found

        clone = self._link(_clone_with_new_ids(siblings[index]), parent_id)
        self._roots = _rewrite_siblings(
            self._roots, parent_id, lambda nodes: nodes[:index + 1] + [clone] + nodes[index + 1:]
        )
        return clone

    def load(self, elements: List[ElementNode]) -> None:
        """ Replace the whole page content. """
        roots: Siblings = []
        for element in elements:
            roots, _ = self._insert_into(roots, None, len(roots), element)
        self._roots = roots

    # ============================================
    # Serialization
    # ============================================

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [root.to_dict() for root in self._roots]

    @classmethod
    def from_dicts(cls, catalog: ElementCatalog, data: List[Dict[str, Any]]) -> "ElementTree":
        elements = [ElementNode.from_dict(item) for item in validate_page({"elements": data})]
        return cls(catalog, elements)

    # ============================================
    # Internals
    # ============================================

    def _insert_into(self, roots: Siblings, parent_id: Optional[str], index: int,
                     node: ElementNode) -> Tuple[Siblings, ElementNode]:
        if parent_id is not None:
            parent = _find(roots, parent_id)
            if parent is None:
                raise NotFoundError(parent_id)
            parent_entry = self.catalog.get(parent.type)
            if parent.children is None or parent_entry is None or not parent_entry.can_have_children:
                raise InvalidParentError(parent_id)
            if not parent_entry.accepts(node.type):
                raise InvalidParentError(parent_id, f"'{node.type}' is not an allowed child")

        existing = {n.id for root in roots for n in root.walk()}
        for n in node.walk():
            if n.id in existing:
                raise DuplicateElementIdError(n.id)
            existing.add(n.id)

        linked = self._link(node, parent_id)

        def put(nodes: Siblings) -> Siblings:
            at = _clamp(index, 0, len(nodes))
            return nodes[:at] + [linked] + nodes[at:]

        return _rewrite_siblings(roots, parent_id, put), linked

    def _link(self, node: ElementNode, parent_id: Optional[str]) -> ElementNode:
        """ Copy of ``node`` (own props and style) with parent pointers set throughout its subtree. """
        entry = self.catalog.require(node.type)
        children = None
        if entry.can_have_children:
            children = []
            for child in node.children or []:
                if not entry.accepts(child.type):
                    raise InvalidParentError(node.id, f"'{child.type}' is not an allowed child")
                children.append(self._link(child, node.id))
        elif node.children:
            raise InvalidParentError(node.id)
        return replace(node, parent_id=parent_id, children=children,
                       props=copy.deepcopy(node.props), style=copy.deepcopy(node.style))


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _find(nodes: Siblings, element_id: str) -> Optional[ElementNode]:
    for node in nodes:
        if node.id == element_id:
            return node
        if node.children:
            found = _find(node.children, element_id)
            if found is not None:
                return found
    return None


def _locate(nodes: Siblings, element_id: str,
            parent_id: Optional[str]) -> Optional[Tuple[Optional[str], int, Siblings]]:
    for index, node in enumerate(nodes):
        if node.id == element_id:
            return parent_id, index, nodes
        if node.children:
            found = _locate(node.children, element_id, node.id)
            if found is not None:
                return found
    return None


def _rewrite(nodes: Siblings, element_id: str,
             fn: Callable[[ElementNode], ElementNode]) -> Siblings:
    """ New sibling list with the target node replaced by ``fn(node)``. """
    result = _rewrite_path(nodes, element_id, fn)
    if result is None:
        raise NotFoundError(element_id)
    return result


def _rewrite_path(nodes: Siblings, element_id: str,
                  fn: Callable[[ElementNode], ElementNode]) -> Optional[Siblings]:
    for index, node in enumerate(nodes):
        if node.id == element_id:
            out = list(nodes)
            out[index] = fn(node)
            return out
        if node.children:
            children = _rewrite_path(node.children, element_id, fn)
            if children is not None:
                out = list(nodes)
                out[index] = replace(node, children=children)
                return out
    return None


def _rewrite_siblings(roots: Siblings, parent_id: Optional[str],
                      fn: Callable[[Siblings], Siblings]) -> Siblings:
    if parent_id is None:
        return fn(roots)
    return _rewrite(roots, parent_id, lambda parent: replace(parent, children=fn(parent.children or [])))


def _clone_with_new_ids(node: ElementNode) -> ElementNode:
    return ElementNode(
        id=new_element_id(node.type),
        type=node.type,
        props=copy.deepcopy(node.props),
        style=copy.deepcopy(node.style),
        children=None if node.children is None else [_clone_with_new_ids(c) for c in node.children],
        parent_id=node.parent_id,
    )
