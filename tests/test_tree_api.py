"""Contract tests for the HTTP API: field names, status codes, avatars."""

import asyncio
import json

import pytest
from httpx import ASGITransport, AsyncClient

from treestore import main
from treestore.config import Settings
from treestore.nestedset import DuplicatePolicy, IdentityResolver, NestedSetStore, TreeAssembler
from treestore.trees.router import get_tree_service
from treestore.trees.schemas import AddNodeRequest
from treestore.trees.service import TreeService
from tests.fixtures import PNG_BYTES, add_node_form


class TestGetTree:
    async def test_fresh_tree(self, client):
        resp = await client.get("/getTree")
        assert resp.status_code == 200
        assert resp.json() == {"ID": 1, "Title": "ROOT", "ChildNodes": []}

    async def test_health(self, client):
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_subtree_of_inner_node(self, client):
        await client.post("/addNode", data=add_node_form(1, "A"))
        await client.post("/addNode", data=add_node_form(2, "Inner"))
        await client.post("/addNode", data=add_node_form(1, "B"))

        resp = await client.get("/getTree/ID=2")
        assert resp.status_code == 200
        assert resp.json() == {
            "ID": 2,
            "Title": "A",
            "ChildNodes": [{"ID": 3, "Title": "Inner", "ChildNodes": []}],
        }

    async def test_subtree_of_root_is_whole_tree(self, client):
        await client.post("/addNode", data=add_node_form(1, "A"))
        whole = (await client.get("/getTree")).json()
        assert (await client.get("/getTree/ID=1")).json() == whole

    async def test_subtree_missing_404(self, client):
        resp = await client.get("/getTree/ID=99")
        assert resp.status_code == 404


class TestAddNode:
    async def test_add_returns_whole_tree(self, client):
        resp = await client.post("/addNode", data=add_node_form(1, "A"))
        assert resp.status_code == 200

        resp = await client.post("/addNode", data=add_node_form(1, "B"))
        tree = resp.json()
        assert [c["Title"] for c in tree["ChildNodes"]] == ["A", "B"]
        assert tree["ChildNodes"][0] == {"ID": 2, "Title": "A", "ChildNodes": []}

    async def test_nested_add(self, client):
        await client.post("/addNode", data=add_node_form(1, "A"))
        resp = await client.post("/addNode", data=add_node_form(2, "Inner"))

        tree = resp.json()
        assert tree["ChildNodes"][0]["ChildNodes"][0]["Title"] == "Inner"

    async def test_invalid_title_falls_back(self, client):
        for title in ["has space", "", "x" * 21, None]:
            await client.post("/addNode", data=add_node_form(1, title))

        resp = await client.get("/getNodes")
        titles = [n["Title"] for n in resp.json()]
        assert titles == ["ROOT", "Node", "Node0", "Node1", "Node2"]

    async def test_missing_parent_404(self, client):
        resp = await client.post("/addNode", data=add_node_form(99, "A"))
        assert resp.status_code == 404
        assert "99" in resp.json()["detail"]

    async def test_malformed_json_422(self, client):
        resp = await client.post("/addNode", data={"jsonData": "{not json"})
        assert resp.status_code == 422

    async def test_missing_parent_id_422(self, client):
        resp = await client.post("/addNode", data={"jsonData": json.dumps({"Title": "A"})})
        assert resp.status_code == 422

    async def test_duplicate_rejected_409(self, db, store, avatars):
        strict = NestedSetStore(db, store.guard, IdentityResolver(DuplicatePolicy.REJECT))
        service = TreeService(strict, TreeAssembler(db, store.guard), avatars)
        main.app.dependency_overrides[get_tree_service] = lambda: service
        try:
            async with AsyncClient(
                transport=ASGITransport(app=main.app), base_url="http://test"
            ) as client:
                await client.post("/addNode", data=add_node_form(1, "A"))
                resp = await client.post("/addNode", data=add_node_form(1, "A"))
        finally:
            main.app.dependency_overrides.clear()

        assert resp.status_code == 409


class TestAvatars:
    async def test_upload_and_fetch(self, client):
        resp = await client.post(
            "/addNode",
            data=add_node_form(1, "Pic", with_file=True),
            files={"uploadfile": ("me.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 200

        nodes = (await client.get("/getNodes")).json()
        assert nodes[1]["Avatar"].endswith(".png")

        resp = await client.get("/getAvatar/ID=2")
        assert resp.status_code == 200
        assert resp.content == PNG_BYTES
        assert resp.headers["content-type"].startswith("image/png")

    async def test_file_ignored_without_filestatus(self, client):
        await client.post(
            "/addNode",
            data=add_node_form(1, "Plain"),
            files={"uploadfile": ("me.png", PNG_BYTES, "image/png")},
        )
        nodes = (await client.get("/getNodes")).json()
        assert nodes[1]["Avatar"] is None

    async def test_filestatus_without_file_400(self, client):
        resp = await client.post("/addNode", data=add_node_form(1, "A", with_file=True))
        assert resp.status_code == 400

    async def test_non_image_upload_400(self, client, avatars):
        resp = await client.post(
            "/addNode",
            data=add_node_form(1, "Doc", with_file=True),
            files={"uploadfile": ("notes.txt", b"hello", "text/plain")},
        )
        assert resp.status_code == 400
        assert list(avatars.root.iterdir()) == []

    async def test_failed_insert_removes_saved_avatar(self, client, avatars):
        resp = await client.post(
            "/addNode",
            data=add_node_form(42, "Orphan", with_file=True),
            files={"uploadfile": ("me.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 404
        assert list(avatars.root.iterdir()) == []

    async def test_cancelled_insert_removes_saved_avatar(self, service, store, avatars, monkeypatch):
        async def cancelled(*args):
            raise asyncio.CancelledError

        monkeypatch.setattr(store, "insert", cancelled)

        with pytest.raises(asyncio.CancelledError):
            await service.add_node(
                AddNodeRequest(ParentID=1, Title="Late"), PNG_BYTES, "image/png"
            )
        assert list(avatars.root.iterdir()) == []

    async def test_node_without_avatar_404(self, client):
        resp = await client.get("/getAvatar/ID=1")
        assert resp.status_code == 404

    async def test_delete_removes_subtree_avatars(self, client, avatars):
        await client.post("/addNode", data=add_node_form(1, "Parent"))
        await client.post(
            "/addNode",
            data=add_node_form(2, "Child", with_file=True),
            files={"uploadfile": ("c.png", PNG_BYTES, "image/png")},
        )
        assert len(list(avatars.root.iterdir())) == 1

        resp = await client.delete("/deleteNode/ID=2")

        assert resp.status_code == 200
        assert list(avatars.root.iterdir()) == []


class TestDeleteNode:
    async def test_delete_returns_tree(self, client):
        await client.post("/addNode", data=add_node_form(1, "A"))
        await client.post("/addNode", data=add_node_form(1, "B"))

        resp = await client.delete("/deleteNode/ID=2")

        assert resp.status_code == 200
        assert resp.json() == {
            "ID": 1,
            "Title": "ROOT",
            "ChildNodes": [{"ID": 3, "Title": "B", "ChildNodes": []}],
        }
        nodes = (await client.get("/getNodes")).json()
        assert [(n["Title"], n["lft"], n["rgt"]) for n in nodes] == [
            ("ROOT", 1, 4),
            ("B", 2, 3),
        ]

    async def test_delete_root_400(self, client):
        resp = await client.delete("/deleteNode/ID=1")
        assert resp.status_code == 400
        assert "root" in resp.json()["detail"]

    async def test_delete_missing_404(self, client):
        resp = await client.delete("/deleteNode/ID=77")
        assert resp.status_code == 404

    async def test_delete_non_numeric_id_422(self, client):
        resp = await client.delete("/deleteNode/ID=abc")
        assert resp.status_code == 422


class TestLifespan:
    async def test_lifespan_wires_service(self, tmp_path, monkeypatch):
        settings = Settings(db_path=":memory:", avatar_dir=tmp_path / "av", root_title="Top")
        monkeypatch.setattr(main, "settings", settings)

        async with main.lifespan(main.app):
            service = main.app.dependency_overrides[get_tree_service]()
            tree = await service.get_tree()
            assert tree.Title == "Top"
            assert (tmp_path / "av").is_dir()

        main.app.dependency_overrides.clear()
