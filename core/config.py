"""
Configuration for the enhancer proxy (read from environment variables)
"""
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

DEFAULT_PROVIDER_URL = "https://photoai.imglarger.com/api/PhoAi"

# Headers the provider expects from its mobile client
PROVIDER_HEADERS = {
    "User-Agent": "Dart/3.5 (dart:io)",
    "Accept-Encoding": "gzip",
}


class PollingPolicy(BaseModel):
    """How the orchestrator waits for a provider job to finish"""
    max_attempts: int = Field(60, gt=0)
    interval: float = Field(1.0, ge=0)  # seconds between status calls
    request_timeout: float = Field(10.0, gt=0)  # per status call
    deadline: Optional[float] = Field(None, gt=0)  # overall seconds, None = attempts only


class Settings(BaseModel):
    provider_url: str = DEFAULT_PROVIDER_URL
    temp_dir: Path = Path("/tmp")
    max_upload_bytes: int = 10 * 1024 * 1024
    upload_timeout: float = 30.0
    download_timeout: float = 30.0
    retention_seconds: int = 3600
    polling: PollingPolicy = Field(default_factory=PollingPolicy)
    api_tokens: List[str] = Field(default_factory=list)  # empty = no auth

    @classmethod
    def from_env(cls) -> "Settings":
        deadline = os.getenv("ENHANCER_POLL_DEADLINE")
        tokens = os.getenv("VALID_TOKENS", "")
        return cls(
            provider_url=os.getenv("ENHANCER_PROVIDER_URL", DEFAULT_PROVIDER_URL).rstrip("/"),
            temp_dir=Path(os.getenv("ENHANCER_TEMP_DIR", "/tmp")),
            max_upload_bytes=int(float(os.getenv("ENHANCER_MAX_UPLOAD_MB", "10")) * 1024 * 1024),
            upload_timeout=float(os.getenv("ENHANCER_UPLOAD_TIMEOUT", "30")),
            download_timeout=float(os.getenv("ENHANCER_DOWNLOAD_TIMEOUT", "30")),
            retention_seconds=int(os.getenv("ENHANCER_RETENTION_SECONDS", "3600")),
            polling=PollingPolicy(
                max_attempts=int(os.getenv("ENHANCER_POLL_MAX_ATTEMPTS", "60")),
                interval=float(os.getenv("ENHANCER_POLL_INTERVAL", "1.0")),
                request_timeout=float(os.getenv("ENHANCER_POLL_REQUEST_TIMEOUT", "10")),
                deadline=float(deadline) if deadline else None,
            ),
            api_tokens=[t.strip() for t in tokens.split(",") if t.strip()],
        )
