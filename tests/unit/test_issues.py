"""Tests for the issue service."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from gf_cli.client import ForgeClient
from gf_cli.exceptions import MethodNotAllowedError, is_method_not_allowed


def _issue(local_id: int, status: str) -> dict:
    return {
        "id": f"uuid-{local_id}",
        "localId": local_id,
        "title": f"Issue {local_id}",
        "status": {"id": status},
        "updatedBy": {"username": "bob"},
        "createdAt": "2024-02-01T08:00:00Z",
    }


def _listing(*items: dict) -> dict:
    return {"_embedded": {"issueModelList": list(items)}}


class TestList:
    async def test_sends_status_and_paging(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.get("/project/o/r/issue").mock(return_value=httpx.Response(200, json=_listing(_issue(1, "OPEN"))))
        issues = await client.issues.list("o", "r", state="open")
        params = route.calls.last.request.url.params
        assert params["status"] == "OPEN"
        assert params["page"] == "0"
        assert params["size"] == "100"
        assert issues[0].state == "open"
        assert issues[0].author.username == "bob"

    async def test_local_filter_when_server_ignores_status(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get("/project/o/r/issue").mock(
            return_value=httpx.Response(200, json=_listing(_issue(1, "CLOSED"), _issue(2, "OPEN"), _issue(3, "CLOSED")))
        )
        issues = await client.issues.list("o", "r", state="open")
        assert [i.local_id for i in issues] == [2]

    async def test_all_sends_no_status(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.get("/project/o/r/issue").mock(
            return_value=httpx.Response(200, json=_listing(_issue(1, "CLOSED"), _issue(2, "OPEN")))
        )
        issues = await client.issues.list("o", "r", state="all")
        assert "status" not in route.calls.last.request.url.params
        assert len(issues) == 2

    async def test_invalid_state(self, client: ForgeClient):
        with pytest.raises(ValueError):
            await client.issues.list("o", "r", state="merged")


class TestWrites:
    async def test_create_always_sends_assigned_users(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.post("/project/o/r/issue").mock(return_value=httpx.Response(200, json=_issue(9, "OPEN")))
        issue = await client.issues.create("o", "r", "Crash", "steps")
        assert issue.local_id == 9
        assert json.loads(route.calls.last.request.content) == {
            "title": "Crash",
            "description": "steps",
            "assignedUsers": [],
        }

    async def test_update_sends_only_supplied_fields(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.put("/project/o/r/issue/9").mock(return_value=httpx.Response(200, json=_issue(9, "OPEN")))
        await client.issues.update("o", "r", 9, title="New title")
        assert json.loads(route.calls.last.request.content) == {"title": "New title"}

    async def test_close_and_reopen(self, client: ForgeClient, mock_api: respx.MockRouter):
        close = mock_api.post("/project/o/r/issue/9/close").mock(return_value=httpx.Response(204))
        reopen = mock_api.post("/project/o/r/issue/9/reopen").mock(return_value=httpx.Response(204))
        await client.issues.close("o", "r", 9)
        await client.issues.reopen("o", "r", 9)
        assert close.called and reopen.called

    async def test_delete_not_allowed(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.delete("/project/o/r/issue/9").mock(return_value=httpx.Response(405))
        with pytest.raises(MethodNotAllowedError) as exc_info:
            await client.issues.delete("o", "r", 9)
        assert is_method_not_allowed(exc_info.value)


class TestComments:
    async def test_list_comments(self, client: ForgeClient, mock_api: respx.MockRouter):
        mock_api.get("/project/o/r/issue-discussion/3").mock(
            return_value=httpx.Response(
                200,
                json={"_embedded": {"issueNoteModelList": [{"id": "n1", "note": "+1", "createdBy": {"username": "c"}}]}},
            )
        )
        notes = await client.issues.comments("o", "r", 3)
        assert notes[0].note == "+1"
        assert notes[0].author.username == "c"

    async def test_add_comment(self, client: ForgeClient, mock_api: respx.MockRouter):
        route = mock_api.post("/project/o/r/issue-discussion/3/create").mock(
            return_value=httpx.Response(200, json={"id": "n2", "note": "thanks"})
        )
        note = await client.issues.comment("o", "r", 3, "thanks")
        assert note.id == "n2"
        assert json.loads(route.calls.last.request.content) == {"note": "thanks"}
