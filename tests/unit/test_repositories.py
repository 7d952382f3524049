"""Tests for users, projects, branches, tags, commits and files."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from gf_cli.client import ForgeClient
from gf_cli.models.repositories import FileEntry

PROJECT = "/project/o/r"


class TestUsersAndProjects:
    async def test_me(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get("/user/me").mock(
            return_value=httpx.Response(200, json={"id": "u1", "username": "alice", "name": "Alice", "surname": "Doe"})
        )
        user = await client.users.me()
        assert user.username == "alice"
        assert user.display_name == "Alice Doe"

    async def test_project(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get(PROJECT).mock(
            return_value=httpx.Response(
                200,
                json={"id": "p1", "alias": "r", "title": "Repo", "owner": {"alias": "o"}, "defaultBranch": "main"},
            )
        )
        project = await client.projects.get("o", "r")
        assert project.full_name == "o/r"
        assert project.default_branch == "main"

    async def test_mine_bare_array(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get("/project/my").mock(return_value=httpx.Response(200, json=[{"id": "p1", "alias": "a"}]))
        projects = await client.projects.mine()
        assert [p.alias for p in projects] == ["a"]


class TestBranches:
    async def test_list(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get(f"{PROJECT}/branch").mock(
            return_value=httpx.Response(
                200, json={"_embedded": {"branchList": [{"name": "main", "default": True}, {"name": "dev"}]}}
            )
        )
        branches = await client.branches.list("o", "r")
        assert [b.name for b in branches] == ["main", "dev"]
        assert branches[0].default is True

    async def test_get_uses_query(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.get(f"{PROJECT}/branch").mock(return_value=httpx.Response(200, json={"name": "feature/x"}))
        branch = await client.branches.get("o", "r", "feature/x")
        assert branch.name == "feature/x"
        assert route.calls.last.request.url.params["branchName"] == "feature/x"

    async def test_create_and_delete(self, client: ForgeClient, mock_api: respx.MockRouter):
        create = mock_api.post(f"{PROJECT}/branch").mock(return_value=httpx.Response(200, content=b""))
        delete = mock_api.delete(f"{PROJECT}/branch").mock(return_value=httpx.Response(204))
        branch = await client.branches.create("o", "r", "feature", "main")
        assert branch.name == "feature"
        assert json.loads(create.calls.last.request.content) == {"newBranch": "feature", "originBranch": "main"}
        await client.branches.delete("o", "r", "feature")
        assert delete.calls.last.request.url.params["branchName"] == "feature"


class TestTags:
    async def test_create_on_branch(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.post(f"{PROJECT}/tag/create").mock(return_value=httpx.Response(200, json={"name": "v1"}))
        await client.tags.create("o", "r", "v1", branch="main", message="first")
        assert json.loads(route.calls.last.request.content) == {
            "tagName": "v1",
            "branchName": "main",
            "message": "first",
        }

    @pytest.mark.parametrize(("branch", "commit"), [("", ""), ("main", "abc123")])
    async def test_create_needs_exactly_one_target(self, client: ForgeClient, branch: str, commit: str):
        with pytest.raises(ValueError, match="exactly one"):
            await client.tags.create("o", "r", "v1", branch=branch, commit=commit)

    async def test_list_and_delete(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get(f"{PROJECT}/tag").mock(
            return_value=httpx.Response(200, json={"_embedded": {"tagList": [{"name": "v1", "commitId": "abc"}]}})
        )
        delete = mock_api.delete(f"{PROJECT}/tag/v1").mock(return_value=httpx.Response(204))
        tags = await client.tags.list("o", "r")
        assert tags[0].commit_id == "abc"
        await client.tags.delete("o", "r", "v1")
        assert delete.called


class TestCommits:
    async def test_list_with_branch(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.get(f"{PROJECT}/commits").mock(
            return_value=httpx.Response(
                200,
                json={"_embedded": {"commitList": [{"hash": "0123456789abcdef", "message": "Fix bug\n\nDetails"}]}},
            )
        )
        commits = await client.commits.list("o", "r", ref="dev")
        assert route.calls.last.request.url.params["branch"] == "dev"
        assert commits[0].short_sha == "0123456"
        assert commits[0].title == "Fix bug"

    async def test_diff(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get(f"{PROJECT}/commit/abc/diff").mock(
            return_value=httpx.Response(
                200, json={"diffs": [{"filePath": "a.py", "additions": 2, "deletions": 1, "diffContent": "@@"}]}
            )
        )
        diffs = await client.commits.diff("o", "r", "abc")
        assert diffs[0].file_path == "a.py"
        assert diffs[0].additions == 2

    async def test_diff_unexpected_shape(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get(f"{PROJECT}/commit/abc/diff").mock(return_value=httpx.Response(200, json=[]))
        assert await client.commits.diff("o", "r", "abc") == []


class TestFiles:
    def test_entry_names(self):
        assert FileEntry(file_path="src/app/").is_dir
        assert FileEntry(file_path="src/app/").name == "app"
        assert FileEntry(file_path="src/main.py").name == "main.py"

    async def test_list(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.get(f"{PROJECT}/blob/recursive").mock(
            return_value=httpx.Response(200, json=[{"filePath": "src/"}, {"filePath": "README.md", "size": 10}])
        )
        entries = await client.files.list("o", "r", "main", "docs")
        params = route.calls.last.request.url.params
        assert params["commitHash"] == "main"
        assert params["directory"] == "docs"
        assert params["depth"] == "1"
        assert [e.name for e in entries] == ["src", "README.md"]

    async def test_list_root_omits_directory(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.get(f"{PROJECT}/blob/recursive").mock(return_value=httpx.Response(200, json=[]))
        assert await client.files.list("o", "r", "main") == []
        assert "directory" not in route.calls.last.request.url.params

    async def test_get_reads_text(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.get(f"{PROJECT}/blob/download").mock(
            return_value=httpx.Response(200, content="# Привет\n".encode())
        )
        assert await client.files.get("o", "r", "main", "README.md") == "# Привет\n"
        assert route.calls.last.request.url.params["file"] == "README.md"

    async def test_download_filename_falls_back_to_path(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get(f"{PROJECT}/blob/download").mock(return_value=httpx.Response(200, content=b"x"))
        async with await client.files.download("o", "r", "main", "docs/guide.md") as dl:
            assert dl.filename == "guide.md"
