"""FastAPI routes for reading and editing the tree."""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from pydantic import ValidationError

from treestore.errors import (
    AvatarNotFoundError,
    ConcurrencyViolation,
    DuplicateTitleError,
    InvalidAvatarError,
    InvalidOperationError,
    NodeNotFoundError,
    StorageError,
    TreeStoreError,
)
from treestore.trees.schemas import AddNodeRequest, NodeResponse, TreeResponse
from treestore.trees.service import TreeService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tree"])


def get_tree_service() -> TreeService:
    """Dependency placeholder, replaced at app startup."""
    raise RuntimeError("TreeService not initialized")


def _http_error(error: TreeStoreError) -> HTTPException:
    """Translate a core error into the matching HTTP failure."""
    if isinstance(error, (NodeNotFoundError, AvatarNotFoundError)):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, (InvalidOperationError, InvalidAvatarError)):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, DuplicateTitleError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, (StorageError, ConcurrencyViolation)):
        logger.error("Tree operation failed: %s", error)
    return HTTPException(status_code=500, detail=str(error))


@router.get("/getTree")
async def get_tree(
    service: TreeService = Depends(get_tree_service),
) -> TreeResponse:
    try:
        return await service.get_tree()
    except TreeStoreError as e:
        raise _http_error(e) from e


@router.get("/getTree/ID={node_id}")
async def get_subtree(
    node_id: int,
    service: TreeService = Depends(get_tree_service),
) -> TreeResponse:
    """The subtree rooted at ``node_id``."""
    try:
        return await service.get_subtree(node_id)
    except TreeStoreError as e:
        raise _http_error(e) from e


@router.get("/getNodes")
async def list_nodes(
    service: TreeService = Depends(get_tree_service),
) -> list[NodeResponse]:
    """Flat node listing with raw interval bounds, in pre-order."""
    try:
        return await service.list_nodes()
    except TreeStoreError as e:
        raise _http_error(e) from e


@router.post("/addNode")
async def add_node(
    jsonData: str = Form(...),
    filestatus: str = Form("false"),
    uploadfile: UploadFile | None = File(None),
    service: TreeService = Depends(get_tree_service),
) -> TreeResponse:
    """Append a child to ``ParentID`` and return the whole tree."""
    try:
        request = AddNodeRequest.model_validate_json(jsonData)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    avatar = None
    content_type = None
    if filestatus == "true":
        if uploadfile is None:
            raise HTTPException(status_code=400, detail="filestatus is true but no uploadfile was sent")
        avatar = await uploadfile.read()
        content_type = uploadfile.content_type

    try:
        return await service.add_node(request, avatar, content_type)
    except TreeStoreError as e:
        raise _http_error(e) from e


@router.delete("/deleteNode/ID={node_id}")
async def delete_node(
    node_id: int,
    service: TreeService = Depends(get_tree_service),
) -> TreeResponse:
    """Remove a node with its subtree and return the whole tree."""
    try:
        return await service.delete_node(node_id)
    except TreeStoreError as e:
        raise _http_error(e) from e


@router.get("/getAvatar/ID={node_id}")
async def get_avatar(
    node_id: int,
    service: TreeService = Depends(get_tree_service),
) -> FileResponse:
    try:
        path = await service.get_avatar_path(node_id)
    except TreeStoreError as e:
        raise _http_error(e) from e
    return FileResponse(path)
