"""Narration upload collaborator (object storage behind an HTTP endpoint)."""

from __future__ import annotations

import asyncio
import json
import time
import urllib.error
import urllib.request
import uuid
from abc import ABC, abstractmethod

from preview_composer.utils.config import UPLOAD_ALLOWED_MIME_TYPES, UPLOAD_MAX_FILE_SIZE_MB


class UploadError(Exception):
    """Upload rejected locally or by the storage endpoint."""


def validate_upload(audio_bytes: bytes, mime_type: str) -> None:
    """Raise UploadError if the payload violates the upload contract."""
    if not audio_bytes:
        raise UploadError("파일이 필요합니다.")
    if mime_type not in UPLOAD_ALLOWED_MIME_TYPES:
        raise UploadError(f"지원하지 않는 파일 형식입니다: {mime_type}")
    if len(audio_bytes) > UPLOAD_MAX_FILE_SIZE_MB * 1024 * 1024:
        raise UploadError(
            f"파일 크기가 너무 큽니다. 최대 {UPLOAD_MAX_FILE_SIZE_MB}MB까지 업로드 가능합니다."
        )


class NarrationUploader(ABC):
    """Stores a narration clip durably and returns its public URL."""

    async def upload(self, audio_bytes: bytes, scene_id: str, mime_type: str = "audio/mpeg") -> str:
        validate_upload(audio_bytes, mime_type)
        return await self._upload(audio_bytes, scene_id, mime_type)

    @abstractmethod
    async def _upload(self, audio_bytes: bytes, scene_id: str, mime_type: str) -> str:
        ...


class HttpNarrationUploader(NarrationUploader):
    """POSTs the clip as multipart/form-data and reads ``url`` from the JSON reply."""

    def __init__(self, endpoint: str, auth_token: str | None = None, timeout: float = 30.0):
        self._endpoint = endpoint
        self._auth_token = auth_token
        self._timeout = timeout

    @staticmethod
    def _build_multipart(audio_bytes: bytes, scene_id: str, mime_type: str) -> tuple[bytes, str]:
        boundary = uuid.uuid4().hex
        file_name = f"{int(time.time() * 1000)}_scene_{scene_id}_voice.mp3"
        head = (
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="sceneId"\r\n\r\n'
            f"{scene_id}\r\n"
            f"--{boundary}\r\n"
            f'Content-Disposition: form-data; name="file"; filename="{file_name}"\r\n'
            f"Content-Type: {mime_type}\r\n\r\n"
        ).encode("utf-8")
        tail = f"\r\n--{boundary}--\r\n".encode("utf-8")
        return head + audio_bytes + tail, f"multipart/form-data; boundary={boundary}"

    def upload_sync(self, audio_bytes: bytes, scene_id: str, mime_type: str) -> str:
        body, content_type = self._build_multipart(audio_bytes, scene_id, mime_type)
        req = urllib.request.Request(self._endpoint, data=body, method="POST")
        req.add_header("Content-Type", content_type)
        if self._auth_token:
            req.add_header("Authorization", f"Bearer {self._auth_token}")

        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as response:
                data = json.loads(response.read().decode("utf-8"))
        except urllib.error.HTTPError as e:
            message = ""
            try:
                message = json.loads(e.read().decode("utf-8")).get("error", "")
            except (OSError, ValueError):
                pass
            raise UploadError(f"파일 업로드 실패 ({e.code}): {message}") from e
        except (urllib.error.URLError, TimeoutError) as e:
            raise UploadError(f"Upload network error: {e}") from e
        except ValueError as e:
            raise UploadError(f"Invalid upload response: {e}") from e

        url = data.get("url") if isinstance(data, dict) else None
        if not url:
            raise UploadError("업로드된 파일의 공개 URL을 가져올 수 없어요.")
        return url

    async def _upload(self, audio_bytes: bytes, scene_id: str, mime_type: str) -> str:
        return await asyncio.to_thread(self.upload_sync, audio_bytes, scene_id, mime_type)
