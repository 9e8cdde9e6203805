"""Tree service: coordinates the nested-set store, tree assembly, and avatars."""

import logging
from pathlib import Path

from treestore.avatars.storage import AvatarStorage
from treestore.errors import AvatarNotFoundError
from treestore.nestedset.assembler import TreeAssembler
from treestore.nestedset.store import NestedSetStore
from treestore.trees.schemas import AddNodeRequest, NodeResponse, TreeResponse

logger = logging.getLogger(__name__)


class TreeService:
    """The boundary between HTTP routes and the nested-set core."""

    def __init__(
        self,
        store: NestedSetStore,
        assembler: TreeAssembler,
        avatars: AvatarStorage,
    ) -> None:
        self._store = store
        self._assembler = assembler
        self._avatars = avatars

    async def get_tree(self) -> TreeResponse:
        tree = await self._assembler.build_tree()
        return TreeResponse.from_tree(tree)

    async def list_nodes(self) -> list[NodeResponse]:
        return [NodeResponse.from_node(n) for n in await self._store.list_nodes()]

    async def get_subtree(self, node_id: int) -> TreeResponse:
        tree = await self._assembler.build_subtree(node_id)
        return TreeResponse.from_tree(tree)

    async def add_node(
        self,
        request: AddNodeRequest,
        avatar: bytes | None = None,
        avatar_content_type: str | None = None,
    ) -> TreeResponse:
        """Insert a node (saving its avatar first, if any) and return the tree."""
        attachment = None
        if avatar is not None:
            attachment = self._avatars.save(avatar, avatar_content_type)

        try:
            await self._store.insert(request.ParentID, request.title, attachment)
        except BaseException:
            if attachment is not None:
                self._avatars.remove(attachment)
            raise

        return await self.get_tree()

    async def delete_node(self, node_id: int) -> TreeResponse:
        """Delete a node with its subtree, drop their avatars, return the tree."""
        removed = await self._store.delete(node_id)
        for node in removed:
            if node.attachment is not None:
                self._avatars.remove(node.attachment)
        return await self.get_tree()

    async def get_avatar_path(self, node_id: int) -> Path:
        node = await self._store.get_node(node_id)
        if node.attachment is None:
            raise AvatarNotFoundError(node_id)
        path = self._avatars.path_for(node.attachment)
        if path is None:
            logger.warning("Avatar file %s of node %d is missing", node.attachment, node_id)
            raise AvatarNotFoundError(node_id)
        return path
