"""Shared test helpers."""

import json

from treestore.models import Node
from treestore.nestedset.store import NestedSetStore

# Not a decodable image; only the bytes and the content type matter here.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def intervals(store: NestedSetStore) -> dict[int, tuple[int, int]]:
    """Map node id -> (lft, rgt) for every stored node."""
    return {n.id: (n.lft, n.rgt) for n in await store.list_nodes()}


async def intervals_by_title(store: NestedSetStore) -> dict[str, tuple[int, int]]:
    return {n.title: (n.lft, n.rgt) for n in await store.list_nodes()}


async def build_sample_tree(store: NestedSetStore) -> dict[str, Node]:
    """Build ROOT -> A -> (A1, A2) and ROOT -> B -> B1 -> B1a.

    Resulting intervals:
        ROOT (1, 14)
          A (2, 7): A1 (3, 4), A2 (5, 6)
          B (8, 13): B1 (9, 12): B1a (10, 11)

    Returns {title: Node} as stored at the end.
    """
    root = await store.get_root()
    a = await store.insert(root.id, "A")
    b = await store.insert(root.id, "B")
    await store.insert(a.id, "A1")
    await store.insert(a.id, "A2")
    b1 = await store.insert(b.id, "B1")
    await store.insert(b1.id, "B1a")
    return {n.title: n for n in await store.list_nodes()}


def add_node_form(parent_id: int, title: str | None, with_file: bool = False) -> dict:
    """Form fields for POST /addNode."""
    payload: dict = {"ParentID": parent_id}
    if title is not None:
        payload["Title"] = title
    return {
        "jsonData": json.dumps(payload),
        "filestatus": "true" if with_file else "false",
    }
