"""Shared test fixtures and configuration for dispatchkit tests."""

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from dispatchkit.config.settings import get_settings
from dispatchkit.core.logging import setup_logging
from dispatchkit.models.http import Request
from dispatchkit.services.arguments import ArgumentResolver
from dispatchkit.services.codecs import CodecSet, default_codecs
from dispatchkit.services.dispatcher import Dispatcher
from tests.helpers.items_app import ItemStore, create_dispatcher


PROJECT_ROOT = Path(__file__).parent.parent


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    config.option.asyncio_mode = "auto"

    # Same logging pipeline as the CLI so structlog processors run in tests.
    setup_logging(json_logs=False, log_level_name="DEBUG")


@pytest.fixture(autouse=True)
def isolated_settings(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Keep settings independent of the developer's environment and cwd."""
    for name in list(os.environ):
        if name.upper().startswith("DISPATCHKIT_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


@pytest.fixture
def codecs() -> CodecSet:
    return CodecSet(default_codecs())


@pytest.fixture
def arguments(codecs: CodecSet) -> ArgumentResolver:
    return ArgumentResolver(codecs)


@pytest.fixture
def store() -> ItemStore:
    store = ItemStore()
    store.add("hammer", "tool")
    store.add("apple", "food")
    store.add("saw", "tool")
    return store


@pytest.fixture
def dispatcher(store: ItemStore) -> Dispatcher:
    return create_dispatcher(store)


@pytest.fixture
def make_request():
    """Build a normalized request from loosely typed parts."""

    def _make(
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | str = b"",
    ) -> Request:
        return Request.build(method, path, headers=headers, body=body)

    return _make
