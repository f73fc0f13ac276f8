from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class CatalogEntrySpec(BaseModel):
    type: str
    name: str
    category: str
    can_have_children: bool = Field(default=False, alias="canHaveChildren")
    default_props: Dict[str, Any] = Field(default_factory=dict, alias="defaultProps")
    default_style: Dict[str, Any] = Field(default_factory=dict, alias="defaultStyle")
    allowed_children: Optional[List[str]] = Field(default=None, alias="allowedChildren")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class CatalogSpec(BaseModel):
    elements: List[CatalogEntrySpec] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class ElementSpec(BaseModel):
    id: str
    type: str
    props: Dict[str, Any] = Field(default_factory=dict)
    style: Dict[str, Any] = Field(default_factory=dict)
    children: Optional[List["ElementSpec"]] = None
    parent_id: Optional[str] = Field(default=None, alias="parentId")

    # pages saved by older editors carry extra keys; keep loading them
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


ElementSpec.model_rebuild()


class PageSpec(BaseModel):
    elements: List[ElementSpec] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


def validate_catalog(raw: Dict[str, Any]) -> CatalogSpec:
    """Validate a raw catalog dict (as loaded from YAML)."""
    try:
        return CatalogSpec.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Catalog validation error: {e}")


def validate_page(raw: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Validate raw page content and return the element dicts in canonical form."""
    try:
        page = PageSpec.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Page validation error: {e}")
    return [element.model_dump(by_alias=True) for element in page.elements]
