"""Nested-set store: interval-encoded node table with atomic shifts.

Every structural mutation runs inside the store's MutationGuard and one
database transaction. Either all interval shifts and the row change are
committed, or none of them are.
"""

import logging

import aiosqlite

from treestore.db.connection import Database
from treestore.errors import (
    InvalidOperationError,
    NodeNotFoundError,
    StorageError,
)
from treestore.models import Node
from treestore.nestedset.guard import MutationGuard
from treestore.nestedset.identity import IdentityResolver

logger = logging.getLogger(__name__)

_NODE_COLUMNS = "id, title, lft, rgt, attachment"


def row_to_node(row: aiosqlite.Row) -> Node:
    """Convert a database row to a Node."""
    return Node(
        id=row["id"],
        title=row["title"],
        lft=row["lft"],
        rgt=row["rgt"],
        attachment=row["attachment"],
    )


async def fetch_root(db: Database) -> Node | None:
    row = await db.fetchone(f"SELECT {_NODE_COLUMNS} FROM nodes ORDER BY lft LIMIT 1")
    return row_to_node(row) if row is not None else None


async def fetch_node(db: Database, node_id: int) -> Node | None:
    row = await db.fetchone(f"SELECT {_NODE_COLUMNS} FROM nodes WHERE id = ?", (node_id,))
    return row_to_node(row) if row is not None else None


class NestedSetStore:
    """Owns the ``nodes`` table and maintains its interval invariants."""

    def __init__(
        self,
        db: Database,
        guard: MutationGuard | None = None,
        resolver: IdentityResolver | None = None,
    ) -> None:
        self._db = db
        self.guard = guard or MutationGuard()
        self.resolver = resolver or IdentityResolver()

    # -- Lifecycle --

    async def initialize(self, root_title: str = "ROOT", reset: bool = False) -> Node:
        """Create the root node (lft=1, rgt=2) if the table has none.

        With ``reset`` the table is emptied first and ID assignment restarts.
        """
        async with self.guard.mutation():
            try:
                async with self._db.transaction() as tx:
                    if reset:
                        await tx.execute("DELETE FROM nodes")
                        await tx.execute("DELETE FROM sqlite_sequence WHERE name = 'nodes'")
                    root = await fetch_root(tx)
                    if root is None:
                        cursor = await tx.execute(
                            "INSERT INTO nodes (title, lft, rgt) VALUES (?, 1, 2)",
                            (root_title,),
                        )
                        root = Node(id=cursor.lastrowid, title=root_title, lft=1, rgt=2)
                        logger.info("Created root node %d (%r)", root.id, root_title)
            except aiosqlite.Error as e:
                raise StorageError(f"Failed to initialize tree: {e}") from e
        return root

    # -- Reads --

    async def get_root(self) -> Node:
        """Return the designated root (minimal lft)."""
        async with self.guard.reading():
            root = await fetch_root(self._db)
        if root is None:
            raise NodeNotFoundError(None)
        return root

    async def get_node(self, node_id: int) -> Node:
        async with self.guard.reading():
            node = await fetch_node(self._db, node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    async def list_nodes(self) -> list[Node]:
        """All nodes in pre-order (ascending lft)."""
        async with self.guard.reading():
            rows = await self._db.fetchall(f"SELECT {_NODE_COLUMNS} FROM nodes ORDER BY lft")
        return [row_to_node(row) for row in rows]

    # -- Mutations --

    async def insert(self, parent_id: int, title: str, attachment: str | None = None) -> Node:
        """Insert a new node as the last child of ``parent_id``.

        Opens a 2-wide gap just before the parent's closing bound and places
        the new node in it.
        """
        async with self.guard.mutation():
            try:
                async with self._db.transaction() as tx:
                    parent = await fetch_node(tx, parent_id)
                    if parent is None:
                        raise NodeNotFoundError(parent_id)
                    title = await self.resolver.resolve(tx, title)

                    anchor = parent.rgt - 1
                    # rgt first so every row keeps lft < rgt mid-shift
                    await tx.execute("UPDATE nodes SET rgt = rgt + 2 WHERE rgt > ?", (anchor,))
                    await tx.execute("UPDATE nodes SET lft = lft + 2 WHERE lft > ?", (anchor,))
                    cursor = await tx.execute(
                        "INSERT INTO nodes (title, lft, rgt, attachment) VALUES (?, ?, ?, ?)",
                        (title, anchor + 1, anchor + 2, attachment),
                    )
                    node = Node(
                        id=cursor.lastrowid,
                        title=title,
                        lft=anchor + 1,
                        rgt=anchor + 2,
                        attachment=attachment,
                    )
                    await self._verify_bounds(tx)
            except aiosqlite.Error as e:
                logger.warning("Insert under node %d rolled back: %s", parent_id, e)
                raise StorageError(f"Failed to insert node: {e}") from e

        logger.info("Inserted node %d (%r) under %d", node.id, node.title, parent_id)
        return node

    async def delete(self, node_id: int) -> list[Node]:
        """Delete a non-root node and its whole subtree, closing the gap.

        Returns the removed nodes in pre-order.
        """
        async with self.guard.mutation():
            try:
                async with self._db.transaction() as tx:
                    root = await fetch_root(tx)
                    if root is not None and root.id == node_id:
                        raise InvalidOperationError("must not delete root node")
                    node = await fetch_node(tx, node_id)
                    if node is None:
                        raise NodeNotFoundError(node_id)

                    left, right, width = node.lft, node.rgt, node.width
                    rows = await tx.fetchall(
                        f"SELECT {_NODE_COLUMNS} FROM nodes WHERE lft BETWEEN ? AND ? ORDER BY lft",
                        (left, right),
                    )
                    removed = [row_to_node(row) for row in rows]
                    cursor = await tx.execute(
                        "DELETE FROM nodes WHERE lft BETWEEN ? AND ?", (left, right)
                    )
                    if cursor.rowcount != node.subtree_size:
                        raise StorageError(
                            f"Node {node_id} spans {node.subtree_size} nodes but "
                            f"{cursor.rowcount} rows were deleted"
                        )
                    # lft first so every row keeps lft < rgt mid-shift
                    await tx.execute("UPDATE nodes SET lft = lft - ? WHERE lft > ?", (width, right))
                    await tx.execute("UPDATE nodes SET rgt = rgt - ? WHERE rgt > ?", (width, right))
                    await self._verify_bounds(tx)
            except aiosqlite.Error as e:
                logger.warning("Delete of node %d rolled back: %s", node_id, e)
                raise StorageError(f"Failed to delete node: {e}") from e

        logger.info("Deleted node %d and %d descendant(s)", node_id, len(removed) - 1)
        return removed

    @staticmethod
    async def _verify_bounds(tx: Database) -> None:
        """Cheap global check: root spans 1..2n. Raises inside the transaction."""
        row = await tx.fetchone("SELECT COUNT(*) AS n, MIN(lft) AS lo, MAX(rgt) AS hi FROM nodes")
        if row["n"] and (row["lo"] != 1 or row["hi"] != 2 * row["n"]):
            raise StorageError(
                f"Interval bounds broken: lft starts at {row['lo']}, "
                f"rgt ends at {row['hi']} for {row['n']} nodes"
            )
