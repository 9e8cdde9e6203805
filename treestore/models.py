"""Canonical data structures for the nested-set tree.

A Node is one row of the interval-encoded table; a TreeNode is the
assembled in-memory view (node plus ordered children).
"""

from pydantic import BaseModel, Field


class Node(BaseModel):
    id: int
    title: str
    lft: int
    rgt: int
    attachment: str | None = None

    @property
    def width(self) -> int:
        """Interval width: twice the size of the node's subtree."""
        return self.rgt - self.lft + 1

    @property
    def subtree_size(self) -> int:
        return self.width // 2


class TreeNode(BaseModel):
    node: Node
    children: list["TreeNode"] = Field(default_factory=list)

    def walk(self):
        """Yield every node of the subtree in pre-order (ascending lft)."""
        yield self.node
        for child in self.children:
            yield from child.walk()
