"""Shared fixtures: temp storage, a scripted provider session, the app client."""

import io
from unittest.mock import Mock

import pytest
import requests
from fastapi.testclient import TestClient
from PIL import Image

from core.api import create_app
from core.config import PollingPolicy, Settings
from core.enhancer import EnhancementOrchestrator
from core.storage import TempStorage

PROVIDER_URL = "https://provider.test/api/PhoAi"
DOWNLOAD_URL = "https://cdn.provider.test/results/abc.jpg"


def make_response(json_data=None, content=b"", status_code=200):
    response = Mock()
    response.status_code = status_code
    response.content = content
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    return response


def upload_ok(code="job-1"):
    return make_response({"data": {"code": code}})


def status(value, urls=None):
    data = {"status": value}
    if urls is not None:
        data["downloadUrls"] = urls
    return make_response({"data": data})


@pytest.fixture
def jpeg_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (16, 16), (200, 30, 30)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def storage(tmp_path):
    store = TempStorage(tmp_path / "temp")
    store.ensure_dir()
    return store


@pytest.fixture
def fast_policy():
    return PollingPolicy(max_attempts=5, interval=0, request_timeout=1)


@pytest.fixture
def session():
    """requests.Session stand-in; tests script post/get via side_effect"""
    return Mock(spec=requests.Session)


@pytest.fixture
def orchestrator(storage, fast_policy, session):
    return EnhancementOrchestrator(
        storage=storage,
        policy=fast_policy,
        base_url=PROVIDER_URL,
        session=session,
    )


@pytest.fixture
def settings(storage, fast_policy):
    return Settings(
        provider_url=PROVIDER_URL,
        temp_dir=storage.directory,
        polling=fast_policy,
        max_upload_bytes=1024 * 1024,
    )


@pytest.fixture
def client(settings, orchestrator):
    app = create_app(settings=settings, orchestrator=orchestrator)
    with TestClient(app) as test_client:
        yield test_client


def leftover_uploads(store):
    """Non-artifact files still in temp storage"""
    return [p for p in store.directory.iterdir() if not p.name.startswith("enhanced_")]
