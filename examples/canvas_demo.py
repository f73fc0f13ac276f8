#!/usr/bin/env python3
"""
Example: building a page on the canvas

Drops elements from the catalog, reorders them, duplicates a section and
saves the page as JSON.
"""

import json
import tempfile

from webbuilder.canvas.catalog import default_catalog
from webbuilder.storage.pages import EditorSession, JsonPageStore


def print_tree(nodes, indent: int = 0):
    """Print the element tree."""
    prefix = "  " * indent
    for node in nodes:
        label = node.props.get("children") if isinstance(node.props.get("children"), str) else ""
        print(f"{prefix}- {node.type} [{node.id}] {label}")
        print_tree(node.children or [], indent + 1)


def main():
    catalog = default_catalog()
    store = JsonPageStore(tempfile.mkdtemp())
    session = EditorSession.open(store, "home", catalog)
    canvas = session.controller

    print("Sidebar:")
    for category in catalog.categories():
        print(f"  {category}: {', '.join(e.name for e in catalog.by_category(category))}")

    section = canvas.on_drag_from_catalog("container", None, 0)[0]
    canvas.on_drag_from_catalog("heading", section.id, 0)
    row = canvas.on_drag_from_catalog("flex", section.id, 1)[0].children[1]
    canvas.on_drag_from_catalog("button", row.id, 0)
    snapshot = canvas.on_drag_from_catalog("text", None, 1)

    # drag the loose text into the section, right under the heading
    canvas.on_drag_reorder(snapshot[1].id, section.id, 1)
    canvas.duplicate_element(section.id)

    print("\nPage:")
    print_tree(session.tree.elements)

    session.save()
    print(f"\nSaved to {store.data_dir / 'home.json'}:")
    print(json.dumps(store.load_page("home").to_dict(), indent=2)[:400], "...")


if __name__ == '__main__':
    main()
