from pathlib import Path

import pytest
from pydantic import ValidationError

from core.config import DEFAULT_PROVIDER_URL, PollingPolicy, Settings


def test_defaults(monkeypatch):
    for name in ("ENHANCER_PROVIDER_URL", "ENHANCER_TEMP_DIR", "ENHANCER_POLL_DEADLINE", "VALID_TOKENS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings.from_env()

    assert settings.provider_url == DEFAULT_PROVIDER_URL
    assert settings.temp_dir == Path("/tmp")
    assert settings.max_upload_bytes == 10 * 1024 * 1024
    assert settings.polling == PollingPolicy(max_attempts=60, interval=1.0, request_timeout=10.0)
    assert settings.api_tokens == []


def test_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("ENHANCER_PROVIDER_URL", "https://provider.test/api/")
    monkeypatch.setenv("ENHANCER_TEMP_DIR", str(tmp_path))
    monkeypatch.setenv("ENHANCER_MAX_UPLOAD_MB", "2")
    monkeypatch.setenv("ENHANCER_POLL_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("ENHANCER_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("ENHANCER_POLL_DEADLINE", "20")
    monkeypatch.setenv("VALID_TOKENS", "a, b,,")

    settings = Settings.from_env()

    assert settings.provider_url == "https://provider.test/api"
    assert settings.temp_dir == tmp_path
    assert settings.max_upload_bytes == 2 * 1024 * 1024
    assert settings.polling.max_attempts == 5
    assert settings.polling.interval == 0.5
    assert settings.polling.deadline == 20
    assert settings.api_tokens == ["a", "b"]


def test_policy_rejects_zero_attempts():
    with pytest.raises(ValidationError):
        PollingPolicy(max_attempts=0)
