"""
Page persistence.

The editor core only needs ``load_page`` / ``save_page``; the storage format
belongs to the store. ``JsonPageStore`` keeps one JSON document per page:

    <data_dir>/
    ├── home.json
    └── about.json
"""

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..canvas.catalog import ElementCatalog
from ..canvas.controller import CanvasController
from ..canvas.models import ElementNode
from ..canvas.schema import validate_page
from ..canvas.tree import ElementTree

logger = logging.getLogger(__name__)

_SAFE_PAGE_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass
class PageContent:
    page_id: str
    elements: List[ElementNode] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pageId": self.page_id,
            "elements": [element.to_dict() for element in self.elements],
        }

    @classmethod
    def from_dict(cls, page_id: str, data: Dict[str, Any]) -> "PageContent":
        elements = [ElementNode.from_dict(item) for item in validate_page(data)]
        return cls(page_id=page_id, elements=elements)


class PageStore(ABC):

    @abstractmethod
    def load_page(self, page_id: str) -> PageContent:
        """ Load a page; an unknown page is returned empty. """

    @abstractmethod
    def save_page(self, page_id: str, elements: List[ElementNode]) -> None:
        pass


class MemoryPageStore(PageStore):

    def __init__(self):
        self._pages: Dict[str, Dict[str, Any]] = {}

    def load_page(self, page_id: str) -> PageContent:
        data = self._pages.get(page_id)
        if data is None:
            return PageContent(page_id=page_id)
        return PageContent.from_dict(page_id, data)

    def save_page(self, page_id: str, elements: List[ElementNode]) -> None:
        self._pages[page_id] = PageContent(page_id, list(elements)).to_dict()


class JsonPageStore(PageStore):

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Page store initialized at: {self.data_dir}")

    def _path(self, page_id: str) -> Path:
        if not _SAFE_PAGE_ID.match(page_id):
            raise ValueError(f"Invalid page id: {page_id!r}")
        return self.data_dir / f"{page_id}.json"

    def load_page(self, page_id: str) -> PageContent:
        path = self._path(page_id)
        if not path.exists():
            return PageContent(page_id=page_id)
        data = json.loads(path.read_text(encoding="utf-8"))
        return PageContent.from_dict(page_id, data)

    def save_page(self, page_id: str, elements: List[ElementNode]) -> None:
        path = self._path(page_id)
        tmp_path = path.with_suffix(".json.tmp")
        content = json.dumps(PageContent(page_id, list(elements)).to_dict(), indent=2, ensure_ascii=False)
        tmp_path.write_text(content, encoding="utf-8")
        os.replace(tmp_path, path)
        logger.info(f"Saved page {page_id} ({len(elements)} top-level elements)")


class EditorSession:
    """ One open page: its tree, the canvas controller, and where to save it. """

    def __init__(self, store: PageStore, page_id: str, controller: CanvasController):
        self.store = store
        self.page_id = page_id
        self.controller = controller
        self.dirty = False
        controller.subscribe(self._mark_dirty)

    @classmethod
    def open(cls, store: PageStore, page_id: str, catalog: ElementCatalog) -> "EditorSession":
        page = store.load_page(page_id)
        tree = ElementTree(catalog, page.elements)
        return cls(store, page_id, CanvasController(tree, catalog))

    @property
    def tree(self) -> ElementTree:
        return self.controller.tree

    def save(self) -> None:
        self.store.save_page(self.page_id, self.tree.elements)
        self.dirty = False

    def _mark_dirty(self, _snapshot: Optional[List[ElementNode]]) -> None:
        self.dirty = True


def page_store_for(settings) -> JsonPageStore:
    return JsonPageStore(settings.pages_dir)
