"""Tests for token storage and inline re-authentication."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from gf_cli import auth
from gf_cli.auth import ReauthCancelled, retry_with_reauth, save_token, verify_token
from gf_cli.config import ConfigFile
from gf_cli.exceptions import NotFoundError, TokenInvalidError
from gf_cli.models.common import User

TEST_HOST = "git.example.com"


class TestSaveToken:
    def test_first_login_becomes_active(self, tmp_path):
        path = tmp_path / "config.json"
        save_token(TEST_HOST, "tok", User(username="alice"), path)
        data = json.loads(path.read_text())
        assert data["active_host"] == TEST_HOST
        assert data["hosts"][TEST_HOST]["token"] == "tok"
        assert data["hosts"][TEST_HOST]["user"] == "alice"

    def test_existing_active_host_kept(self, tmp_path):
        path = tmp_path / "config.json"
        save_token("gitflic.ru", "cloud", User(username="alice"), path)
        save_token(TEST_HOST, "self", User(username="alice"), path)
        cfg = ConfigFile.load(path)
        assert cfg.active_host == "gitflic.ru"
        assert set(cfg.hosts) == {"gitflic.ru", TEST_HOST}

    def test_activate(self, tmp_path):
        path = tmp_path / "config.json"
        save_token("gitflic.ru", "cloud", User(username="alice"), path)
        save_token(TEST_HOST, "self", User(username="bob"), path, activate=True)
        assert ConfigFile.load(path).active_host == TEST_HOST


class TestVerifyToken:
    async def test_returns_user(self):
        with respx.mock(base_url=f"https://{TEST_HOST}/rest-api") as router:
            route = router.get("/user/me").mock(return_value=httpx.Response(200, json={"username": "alice"}))
            user = await verify_token(TEST_HOST, "tok")
        assert user.username == "alice"
        assert route.calls.last.request.headers["Authorization"] == "token tok"

    async def test_rejected(self):
        with respx.mock(base_url=f"https://{TEST_HOST}/rest-api") as router:
            router.get("/user/me").mock(return_value=httpx.Response(403, json={}))
            with pytest.raises(TokenInvalidError):
                await verify_token(TEST_HOST, "bad")


class TestRetryWithReauth:
    async def test_success_passes_through(self):
        async def fn():
            return 42

        assert await retry_with_reauth(TEST_HOST, fn) == 42

    async def test_other_errors_propagate(self, monkeypatch):
        monkeypatch.setattr(auth, "stdin_is_interactive", lambda: True)

        async def fn():
            raise NotFoundError("issue #1")

        with pytest.raises(NotFoundError):
            await retry_with_reauth(TEST_HOST, fn)

    async def test_non_interactive_raises_original(self, monkeypatch):
        monkeypatch.setattr(auth, "stdin_is_interactive", lambda: False)
        calls = []

        async def fn():
            calls.append(1)
            raise TokenInvalidError

        with pytest.raises(TokenInvalidError):
            await retry_with_reauth(TEST_HOST, fn)
        assert len(calls) == 1

    async def test_reauth_then_retry_once(self, monkeypatch):
        monkeypatch.setattr(auth, "stdin_is_interactive", lambda: True)
        prompted = []

        async def fake_prompt(hostname, path=None):
            prompted.append(hostname)
            return "fresh"

        monkeypatch.setattr(auth, "prompt_reauth", fake_prompt)
        results = [TokenInvalidError(), "ok"]

        async def fn():
            result = results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

        assert await retry_with_reauth(TEST_HOST, fn) == "ok"
        assert prompted == [TEST_HOST]

    async def test_second_failure_is_not_retried(self, monkeypatch):
        monkeypatch.setattr(auth, "stdin_is_interactive", lambda: True)

        async def fake_prompt(hostname, path=None):
            return "fresh"

        monkeypatch.setattr(auth, "prompt_reauth", fake_prompt)
        calls = []

        async def fn():
            calls.append(1)
            raise TokenInvalidError

        with pytest.raises(TokenInvalidError):
            await retry_with_reauth(TEST_HOST, fn)
        assert len(calls) == 2

    async def test_cancelled_reauth_raises_original(self, monkeypatch):
        monkeypatch.setattr(auth, "stdin_is_interactive", lambda: True)

        async def fake_prompt(hostname, path=None):
            raise ReauthCancelled

        monkeypatch.setattr(auth, "prompt_reauth", fake_prompt)

        async def fn():
            raise TokenInvalidError

        with pytest.raises(TokenInvalidError):
            await retry_with_reauth(TEST_HOST, fn)

    async def test_prompt_refuses_without_terminal(self, monkeypatch):
        monkeypatch.setattr(auth, "stdin_is_interactive", lambda: False)
        with pytest.raises(TokenInvalidError):
            await auth.prompt_reauth(TEST_HOST)
