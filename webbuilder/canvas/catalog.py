""" Registry of element types that can be placed on the canvas. """

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..errors import UnknownElementTypeError
from .models import ElementNode, new_element_id
from .schema import validate_catalog

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_FILE = Path(__file__).parent / "elements.yaml"


@dataclass(frozen=True)
class CatalogEntry:
    type: str
    name: str
    category: str
    can_have_children: bool = False
    default_props: Dict[str, Any] = field(default_factory=dict)
    default_style: Dict[str, Any] = field(default_factory=dict)
    allowed_children: Optional[Tuple[str, ...]] = None  # None means any type

    def accepts(self, child_type: str) -> bool:
        if not self.can_have_children:
            return False
        return self.allowed_children is None or child_type in self.allowed_children


class ElementCatalog:
    """
    Static lookup table of element types.

    Entries are registered at startup, then the catalog is frozen and only read.
    """

    def __init__(self, entries: Optional[List[CatalogEntry]] = None):
        self._entries: Dict[str, CatalogEntry] = {}
        self._frozen = False
        for entry in entries or []:
            self.register(entry)

    def register(self, entry: CatalogEntry) -> CatalogEntry:
        if self._frozen:
            raise RuntimeError("Catalog is frozen; register element types at startup")
        if entry.type in self._entries:
            raise ValueError(f"Element type already registered: {entry.type}")
        self._entries[entry.type] = entry
        return entry

    def freeze(self) -> "ElementCatalog":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, element_type: str) -> Optional[CatalogEntry]:
        return self._entries.get(element_type)

    def require(self, element_type: str) -> CatalogEntry:
        entry = self._entries.get(element_type)
        if entry is None:
            raise UnknownElementTypeError(element_type)
        return entry

    def by_category(self, category: str) -> List[CatalogEntry]:
        return [entry for entry in self._entries.values() if entry.category == category]

    def categories(self) -> List[str]:
        return list(dict.fromkeys(entry.category for entry in self._entries.values()))

    def instantiate(self, element_type: str) -> ElementNode:
        """ New, unattached node seeded with the entry's defaults. """
        entry = self.require(element_type)
        return ElementNode(
            id=new_element_id(entry.type),
            type=entry.type,
            props=copy.deepcopy(entry.default_props),
            style=copy.deepcopy(entry.default_style),
            children=[] if entry.can_have_children else None,
        )

    def __contains__(self, element_type: str) -> bool:
        return element_type in self._entries

    def __iter__(self):
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


def load_catalog(yaml_text: str) -> ElementCatalog:
    """
    Build a frozen catalog from a YAML document with a top-level ``elements`` list.
    """
    data = yaml.safe_load(yaml_text) or {}
    spec = validate_catalog(data)

    catalog = ElementCatalog()
    for item in spec.elements:
        catalog.register(CatalogEntry(
            type=item.type,
            name=item.name,
            category=item.category,
            can_have_children=item.can_have_children,
            default_props=item.default_props,
            default_style=item.default_style,
            allowed_children=tuple(item.allowed_children) if item.allowed_children is not None else None,
        ))
    logger.debug("Loaded %d element types", len(catalog))
    return catalog.freeze()


def load_catalog_file(path) -> ElementCatalog:
    with open(path, "r", encoding="utf-8") as f:
        return load_catalog(f.read())


_DEFAULT_CATALOG: Optional[ElementCatalog] = None


def default_catalog() -> ElementCatalog:
    """ Built-in catalog, loaded once per process. """
    global _DEFAULT_CATALOG
    if _DEFAULT_CATALOG is None:
        _DEFAULT_CATALOG = load_catalog_file(DEFAULT_CATALOG_FILE)
    return _DEFAULT_CATALOG


def catalog_for(settings) -> ElementCatalog:
    """ Catalog named by ``settings.catalog_file``, else the built-in one. """
    if settings.catalog_file is not None:
        return load_catalog_file(settings.catalog_file)
    return default_catalog()
