from __future__ import annotations

from typing import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fourline.app import create_app
from fourline.config import Settings
from fourline.constants import Placement


@pytest.fixture()
def app() -> FastAPI:
    return create_app(Settings(placement=Placement.GRAVITY))


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
