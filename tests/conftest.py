"""Shared test fixtures for intoto-recorder."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest

from intoto_recorder.core.assembler import begin_link, finish_link
from intoto_recorder.core.signer import Ed25519Key, generate_key, write_key
from intoto_recorder.models.link import Link, LinkDocument, Signature

HELLO_SHA256 = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
WORLD_SHA256 = "486ea46224d1bb4fb680f34f7c9ad96a8f24ec88be73ea8e5a6c65260e9cb8a7"


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Provide an empty workspace directory."""
    ws = tmp_path / "workspace"
    ws.mkdir()
    return ws


@pytest.fixture
def populated_workspace(workspace: Path) -> Path:
    """A workspace with a nested tree of small files."""
    (workspace / "a.txt").write_text("hello")
    (workspace / "src").mkdir()
    (workspace / "src" / "main.c").write_text("int main(void) { return 0; }\n")
    (workspace / "src" / "lib").mkdir()
    (workspace / "src" / "lib" / "util.h").write_text("#pragma once\n")
    (workspace / "docs").mkdir()
    (workspace / "docs" / "README").write_text("docs\n")
    return workspace


@pytest.fixture
def key() -> Ed25519Key:
    """Provide a freshly generated Ed25519 key."""
    return generate_key()


@pytest.fixture
def key_file(tmp_path: Path, key: Ed25519Key) -> Path:
    """The ``key`` fixture written to disk as a hex seed file."""
    return write_key(key, tmp_path / "keys" / "builder.key")


# ---------------------------------------------------------------------------
# Link factories — shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_link() -> Callable[..., Link]:
    """Factory fixture: build a finished Link with sensible defaults."""

    def _factory(
        name: str = "build",
        materials: dict[str, dict[str, str]] | None = None,
        products: dict[str, dict[str, str]] | None = None,
        **overrides: Any,
    ) -> Link:
        link = begin_link(
            name,
            materials if materials is not None else {"a.txt": {"sha256": HELLO_SHA256}},
            command=overrides.pop("command", ["make", "all"]),
            environment=overrides.pop("environment", {"host": "ci-01"}),
        )
        return finish_link(
            link,
            products if products is not None else {"a.txt": {"sha256": WORLD_SHA256}},
            byproducts=overrides.pop("byproducts", {"return-value": 0, "stdout": ""}),
        )

    return _factory


@pytest.fixture
def make_document(make_link: Callable[..., Link]) -> Callable[..., LinkDocument]:
    """Factory fixture: build a LinkDocument, optionally with signatures."""

    def _factory(
        signatures: list[Signature] | None = None, **link_kwargs: Any
    ) -> LinkDocument:
        return LinkDocument(signatures=signatures or [], signed=make_link(**link_kwargs))

    return _factory


# ---------------------------------------------------------------------------
# HTTP capture
# ---------------------------------------------------------------------------


class RecordingHandler:
    """``httpx.MockTransport`` handler that records requests and replies."""

    def __init__(self, status_code: int = 200, text: str = "ok") -> None:
        self.status_code = status_code
        self.text = text
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.text)


@pytest.fixture
def make_client() -> Iterator[Callable[..., tuple[httpx.Client, RecordingHandler]]]:
    """Factory fixture: an ``httpx.Client`` backed by a recording mock transport."""

    clients: list[httpx.Client] = []

    def _factory(
        status_code: int = 200, text: str = "ok"
    ) -> tuple[httpx.Client, RecordingHandler]:
        handler = RecordingHandler(status_code, text)
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client, handler

    yield _factory

    for client in clients:
        client.close()
