"""Shared fixtures for sync tests."""

import io
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from fakes import BASE_URL, FIXED_TIME, FakeCMS, make_site
from kirby_sync.core.client import KirbyClient
from kirby_sync.core.logger import SyncLogger
from kirby_sync.core.orchestrator import SyncOrchestrator
from kirby_sync.models.config import SyncConfig


@pytest.fixture
def cms() -> FakeCMS:
    return FakeCMS(make_site())


@pytest.fixture
def logger() -> SyncLogger:
    return SyncLogger(console=Console(file=io.StringIO(), width=300), verbose=True)


@pytest.fixture
def config(tmp_path: Path) -> SyncConfig:
    return SyncConfig(
        api_base_url=BASE_URL,
        content_dir=tmp_path / "content",
        state_file=tmp_path / "cache" / "sync-state.json",
        cache_dir=tmp_path / "build-cache",
        retries=1,
        retry_delay=0,
    )


@pytest.fixture
def make_orchestrator(config: SyncConfig, cms: FakeCMS, logger: SyncLogger):
    """Factory for orchestrators wired to the fake CMS."""

    def factory(**overrides: Any) -> SyncOrchestrator:
        cfg = SyncConfig(**{**config.__dict__, **overrides})
        client = KirbyClient(
            cfg.api_base_url,
            retries=cfg.retries,
            retry_delay=cfg.retry_delay,
            session=cms,
            sleep=lambda _: None,
        )
        return SyncOrchestrator(cfg, client=client, logger=logger, clock=lambda: FIXED_TIME)

    return factory
