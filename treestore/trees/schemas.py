"""Request and response schemas for the tree endpoints.

Field names keep the established wire format of the tree API
(``ID``, ``Title``, ``ChildNodes``, ``ParentID``).
"""

import re

from pydantic import BaseModel, Field, field_validator

from treestore.models import Node, TreeNode

TITLE_PATTERN = re.compile(r"^[A-Za-z0-9]+$")
TITLE_MAX_LENGTH = 20
DEFAULT_TITLE = "Node"

# -- Requests --


class AddNodeRequest(BaseModel):
    """Decoded ``jsonData`` form field of POST /addNode."""

    ParentID: int
    Title: str | None = None

    @field_validator("Title")
    @classmethod
    def _fallback_title(cls, value: str | None) -> str:
        """Invalid or missing titles become the default title instead of failing."""
        if not value or len(value) > TITLE_MAX_LENGTH or not TITLE_PATTERN.match(value):
            return DEFAULT_TITLE
        return value

    @property
    def title(self) -> str:
        return self.Title or DEFAULT_TITLE


# -- Responses --


class TreeResponse(BaseModel):
    ID: int
    Title: str
    ChildNodes: list["TreeResponse"] = Field(default_factory=list)

    @classmethod
    def from_tree(cls, tree: TreeNode) -> "TreeResponse":
        return cls(
            ID=tree.node.id,
            Title=tree.node.title,
            ChildNodes=[cls.from_tree(child) for child in tree.children],
        )


class NodeResponse(BaseModel):
    ID: int
    Title: str
    lft: int
    rgt: int
    Avatar: str | None = None

    @classmethod
    def from_node(cls, node: Node) -> "NodeResponse":
        return cls(
            ID=node.id,
            Title=node.title,
            lft=node.lft,
            rgt=node.rgt,
            Avatar=node.attachment,
        )
