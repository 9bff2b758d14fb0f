"""Fixtures for the chat-room API tests."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from chatroom.app import create_app
from chatroom.settings import Settings
from tests.fakes import FakeChatStore


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="mongodb://localhost:27017",
        database_name="chatroom_test",
        port=5000,
        sweep_interval=15,
        stale_after=10,
        cors_origins=["*"],
    )


@pytest.fixture
def store() -> FakeChatStore:
    return FakeChatStore()


@pytest.fixture
def test_app(store: FakeChatStore, settings: Settings) -> FastAPI:
    return create_app(store=store, settings=settings, run_sweeper=False)


@pytest.fixture
def client(test_app: FastAPI):
    with TestClient(test_app) as c:
        yield c


@pytest.fixture
def register(client: TestClient):
    """Register participants by name, asserting success."""

    def _register(*names: str) -> None:
        for name in names:
            assert client.post("/participants", json={"name": name}).status_code == 201

    return _register
