"""
Shared fixtures: a vault on disk and an in-process Redis server.
"""

import fakeredis
from fakeredis import aioredis as fake_aioredis
import pytest

from spanreed.bridge.vault import FileSystemVault


@pytest.fixture
def vault_root(tmp_path):
    root = tmp_path / "vault"
    (root / "Notes").mkdir(parents=True)
    (root / "Other").mkdir()
    (root / "Notes" / "a.md").write_text("---\ntags:\n- alpha\ncreated: 2024-01-01\n---\nHello\n", encoding="utf-8")
    (root / "Notes" / "b.md").write_text("plain body\n", encoding="utf-8")
    (root / "Other" / "c.md").write_text("---\nstatus: draft\n---\n", encoding="utf-8")
    return root


@pytest.fixture
def vault(vault_root):
    return FileSystemVault(str(vault_root), daily_folder="Daily")


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
def client_factory(redis_server):
    """Client factory recording every URL it was asked to connect to."""
    calls = []

    def factory(url):
        calls.append(url)
        return fake_aioredis.FakeRedis(server=redis_server)

    factory.calls = calls
    return factory
