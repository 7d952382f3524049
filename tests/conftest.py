"""Shared test fixtures for gf-cli."""

from __future__ import annotations

import pytest
import respx

from gf_cli.client import ForgeClient
from gf_cli.config import ForgeConfig

TEST_HOST = "git.example.com"
TEST_TOKEN = "test-token"
BASE = f"https://{TEST_HOST}/rest-api"

CLOUD_API = "https://api.gitflic.ru"
CLOUD_SITE = "https://gitflic.ru/"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep the developer's config file and environment out of every test."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in ("GF_TOKEN", "GF_HOST", "GF_REPO", "GF_DEBUG", "GF_TIMEOUT", "NO_COLOR"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config() -> ForgeConfig:
    return ForgeConfig(host=TEST_HOST, token=TEST_TOKEN, retry_base_wait=0)


@pytest.fixture
async def client(config: ForgeConfig):
    async with ForgeClient(config) as c:
        yield c


@pytest.fixture
def mock_api():
    with respx.mock(base_url=BASE) as router:
        yield router


@pytest.fixture
async def cloud_client():
    async with ForgeClient(ForgeConfig(token=TEST_TOKEN, retry_base_wait=0)) as c:
        yield c
