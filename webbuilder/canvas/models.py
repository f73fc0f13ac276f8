""" Data models for the canvas element tree """

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


def new_element_id(element_type: str) -> str:
    """ Fresh, never reused element id, e.g. ``button-3f9c1a2b7d4e``. """
    return f"{element_type}-{uuid.uuid4().hex[:12]}"


@dataclass
class ElementNode:
    id: str
    type: str
    props: Dict[str, Any] = field(default_factory=dict)
    style: Dict[str, Any] = field(default_factory=dict)
    children: Optional[List["ElementNode"]] = None  # None for leaf types
    parent_id: Optional[str] = None

    @property
    def is_container(self) -> bool:
        return self.children is not None

    def walk(self) -> Iterator["ElementNode"]:
        """ Pre-order traversal of this node and its descendants. """
        yield self
        for child in self.children or []:
            yield from child.walk()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "props": dict(self.props),
            "style": dict(self.style),
            "parentId": self.parent_id,
        }
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], parent_id: Optional[str] = None) -> "ElementNode":
        children_data = data.get("children")
        children = None
        if children_data is not None:
            children = [cls.from_dict(child, parent_id=data["id"]) for child in children_data]
        return cls(
            id=data["id"],
            type=data["type"],
            props=dict(data.get("props") or {}),
            style=dict(data.get("style") or {}),
            children=children,
            parent_id=parent_id,
        )


@dataclass
class NodePatch:
    """ Shallow update applied to a node's props and style. """
    props: Dict[str, Any] = field(default_factory=dict)
    style: Dict[str, Any] = field(default_factory=dict)
