"""
Enhancement orchestration against the remote provider: upload, poll, fetch
"""
import logging
import mimetypes
import os
import secrets
import threading
import time
from typing import List, Optional
from urllib.parse import urlparse

import requests

from .config import DEFAULT_PROVIDER_URL, PROVIDER_HEADERS, PollingPolicy
from .errors import (
    DownloadError,
    EnhancementCancelledError,
    EnhancementFailedError,
    PollingTimeoutError,
    StatusCheckError,
    UploadError,
)
from .models import EnhancedArtifact, EnhancementJob, EnhancementRequest, JobStatus
from .storage import TempStorage

logger = logging.getLogger(__name__)

USERNAME_SUFFIX = "_aiimglarger"
FALLBACK_CONTENT_TYPE = "image/jpeg"
ARTIFACT_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}


def generate_username() -> str:
    """Random per-job identity presented to the provider"""
    return f"{secrets.token_hex(8)}{USERNAME_SUFFIX}"


def guess_content_type(filename: str, declared: Optional[str] = None) -> str:
    if declared and declared.startswith("image/"):
        return declared
    guessed, _ = mimetypes.guess_type(filename or "")
    if guessed and guessed.startswith("image/"):
        return guessed
    return FALLBACK_CONTENT_TYPE


def artifact_extension(download_url: str) -> str:
    ext = os.path.splitext(urlparse(download_url).path)[1].lower()
    return ext if ext in ARTIFACT_EXTENSIONS else ".jpg"


class CancellationToken:
    """Lets the caller abort an in-flight enhancement"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; True if cancelled meanwhile"""
        return self._event.wait(timeout)

    def raise_if_cancelled(self, stage: str) -> None:
        if self._event.is_set():
            raise EnhancementCancelledError(f"Enhancement cancelled before {stage}")


class EnhancementOrchestrator:
    """Runs one enhancement through the provider: submit -> poll -> fetch_and_persist"""

    def __init__(
        self,
        storage: TempStorage,
        policy: Optional[PollingPolicy] = None,
        base_url: str = DEFAULT_PROVIDER_URL,
        session: Optional[requests.Session] = None,
        upload_timeout: float = 30.0,
        download_timeout: float = 30.0,
    ):
        self.storage = storage
        self.policy = policy or PollingPolicy()
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.upload_timeout = upload_timeout
        self.download_timeout = download_timeout

    @classmethod
    def from_settings(cls, settings, session: Optional[requests.Session] = None):
        return cls(
            storage=TempStorage(settings.temp_dir),
            policy=settings.polling,
            base_url=settings.provider_url,
            session=session,
            upload_timeout=settings.upload_timeout,
            download_timeout=settings.download_timeout,
        )

    def submit(self, request: EnhancementRequest,
               cancel_token: Optional[CancellationToken] = None) -> EnhancementJob:
        """Upload the image and return the provider job"""
        if cancel_token:
            cancel_token.raise_if_cancelled("upload")

        username = generate_username()
        content_type = guess_content_type(request.original_filename, request.content_type)
        data = {
            "type": str(request.type),
            "username": username,
            "scaleRadio": str(request.scale_ratio),
        }
        files = {"file": (request.original_filename, request.image_bytes, content_type)}

        try:
            response = self.session.post(
                f"{self.base_url}/Upload",
                data=data,
                files=files,
                headers=PROVIDER_HEADERS,
                timeout=self.upload_timeout,
            )
            response.raise_for_status()
            code = response.json()["data"]["code"]
        except requests.RequestException as e:
            raise UploadError(f"Upload failed: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise UploadError(f"Malformed upload response: {e!r}") from e

        if code is None or code == "":
            raise UploadError("Upload response did not include a job code")

        logger.info(f"📤 [UPLOAD] {code}")
        return EnhancementJob(
            code=code,
            username=username,
            scale_ratio=request.scale_ratio,
            type=request.type,
        )

    def check_status(self, job: EnhancementJob) -> dict:
        """One status call; returns the provider's ``data`` object"""
        params = {
            "code": job.code,
            "type": job.type,
            "username": job.username,
            "scaleRadio": str(job.scale_ratio),
        }
        try:
            response = self.session.post(
                f"{self.base_url}/CheckStatus",
                json=params,
                headers=PROVIDER_HEADERS,
                timeout=self.policy.request_timeout,
            )
            response.raise_for_status()
            result = response.json()["data"]
        except requests.RequestException as e:
            raise StatusCheckError(f"Status check failed: {e}") from e
        except (ValueError, KeyError, TypeError) as e:
            raise StatusCheckError(f"Malformed status response: {e!r}") from e

        if not isinstance(result, dict):
            raise StatusCheckError(f"Malformed status response: {result!r}")
        return result

    def poll(self, job: EnhancementJob,
             cancel_token: Optional[CancellationToken] = None) -> List[str]:
        """Poll until the job succeeds; returns its download URLs"""
        policy = self.policy
        started = time.monotonic()

        for attempt in range(1, policy.max_attempts + 1):
            if cancel_token:
                cancel_token.raise_if_cancelled("status check")

            result = self.check_status(job)
            job.attempts = attempt
            status = result.get("status")
            logger.info(f"🔍 [CHECK {attempt}] {status}")

            if status == JobStatus.SUCCESS.value:
                job.status = JobStatus.SUCCESS
                urls = result.get("downloadUrls") or []
                if not urls:
                    raise EnhancementFailedError("Enhancement succeeded without a download URL")
                return list(urls)

            if status == JobStatus.ERROR.value:
                job.status = JobStatus.ERROR
                raise EnhancementFailedError("Enhancement failed")

            if attempt == policy.max_attempts:
                break
            if policy.deadline is not None and time.monotonic() - started >= policy.deadline:
                raise PollingTimeoutError(
                    f"Enhancement did not finish within {policy.deadline} seconds"
                )

            if cancel_token:
                if cancel_token.wait(policy.interval):
                    cancel_token.raise_if_cancelled("status check")
            else:
                time.sleep(policy.interval)

        raise PollingTimeoutError(
            f"Enhancement failed after maximum polling attempts ({policy.max_attempts})"
        )

    def fetch_and_persist(self, download_url: str, upload_path=None,
                          cancel_token: Optional[CancellationToken] = None) -> EnhancedArtifact:
        """Download the result into temp storage; removes the upload either way"""
        try:
            if cancel_token:
                cancel_token.raise_if_cancelled("download")

            try:
                response = self.session.get(download_url, timeout=self.download_timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                raise DownloadError(f"Failed to download enhanced image: {e}") from e

            content = response.content
            if not content:
                raise DownloadError("Enhanced image download was empty")

            filename, path = self.storage.write_artifact(content, artifact_extension(download_url))
            return EnhancedArtifact(download_url=download_url, local_filename=filename, local_path=path)
        finally:
            self.storage.remove(upload_path)

    def enhance(self, request: EnhancementRequest, upload_path=None,
                cancel_token: Optional[CancellationToken] = None) -> EnhancedArtifact:
        """Full submit -> poll -> fetch_and_persist sequence"""
        try:
            job = self.submit(request, cancel_token)
            urls = self.poll(job, cancel_token)
            return self.fetch_and_persist(urls[0], upload_path, cancel_token)
        except Exception as e:
            logger.error(f"❌ [ERROR] {e}")
            raise
        finally:
            # fetch_and_persist already removes it on its own paths
            self.storage.remove(upload_path)
