from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.member_bridge.api.http.app import create_app
from src.member_bridge.core.services import TokenCodec
from src.member_bridge.core.storage import InMemoryMemberStore
from src.member_bridge.runtime.config.config_data import ConfigData
from tests.fixtures.services import AssertionFactory, _assertion_factory


@pytest.fixture
def app(test_config: ConfigData, member_store: InMemoryMemberStore) -> FastAPI:
    return create_app(test_config, member_store=member_store)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient]:
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client


@pytest.fixture
def sign_live(shared_secret: str) -> AssertionFactory:
    """Sign a bridge assertion on the wall clock, as the running app sees it."""
    return _assertion_factory(TokenCodec(shared_secret))
