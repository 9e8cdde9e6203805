"""Rebuilds the in-memory tree from interval data."""

from treestore.db.connection import Database
from treestore.errors import NodeNotFoundError
from treestore.models import Node, TreeNode
from treestore.nestedset.guard import MutationGuard
from treestore.nestedset.store import fetch_node, fetch_root, row_to_node

# Immediate children of a node: every node nested in its interval whose
# ancestors inside that subtree (the subtree root included) number exactly one.
_CHILDREN_SQL = """
SELECT child.id, child.title, child.lft, child.rgt, child.attachment
FROM nodes AS parent
JOIN nodes AS child
    ON child.lft > parent.lft AND child.rgt < parent.rgt
JOIN nodes AS ancestor
    ON ancestor.lft >= parent.lft
    AND ancestor.lft < child.lft
    AND ancestor.rgt > child.rgt
WHERE parent.id = ?
GROUP BY child.id
HAVING COUNT(ancestor.id) = 1
ORDER BY child.lft
"""


class TreeAssembler:
    """Assembles TreeNode hierarchies with one query per node.

    Each call re-derives the subtree from the current interval state under
    a shared read section, so it never observes a half-applied shift.
    """

    def __init__(self, db: Database, guard: MutationGuard) -> None:
        self._db = db
        self._guard = guard

    async def build_tree(self) -> TreeNode:
        """Return the whole tree under the root."""
        async with self._guard.reading():
            root = await fetch_root(self._db)
            if root is None:
                raise NodeNotFoundError(None)
            return await self._assemble(root)

    async def build_subtree(self, node_id: int) -> TreeNode:
        async with self._guard.reading():
            node = await fetch_node(self._db, node_id)
            if node is None:
                raise NodeNotFoundError(node_id)
            return await self._assemble(node)

    async def descendants(self, node_id: int) -> list[Node]:
        """Immediate children of ``node_id``, left to right."""
        async with self._guard.reading():
            if await fetch_node(self._db, node_id) is None:
                raise NodeNotFoundError(node_id)
            return await self._children_of(node_id)

    async def _children_of(self, node_id: int) -> list[Node]:
        rows = await self._db.fetchall(_CHILDREN_SQL, (node_id,))
        return [row_to_node(row) for row in rows]

    async def _assemble(self, node: Node) -> TreeNode:
        # Leaves have rgt == lft + 1; skip the query for them
        if node.width == 2:
            return TreeNode(node=node)
        children = await self._children_of(node.id)
        return TreeNode(node=node, children=[await self._assemble(c) for c in children])
