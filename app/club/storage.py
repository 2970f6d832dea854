"""
Club Thumbnail Storage

Supabase Storage 버킷에 동아리 썸네일 업로드
경로: {club_id}/thumbnail.{ext} (같은 동아리는 덮어쓰기)
"""

from typing import Optional

from loguru import logger
from supabase import Client

from .config import get_club_settings

THUMBNAIL_EXTENSIONS = {
    "image/png": "png",
    "image/webp": "webp",
}
DEFAULT_THUMBNAIL_EXTENSION = "jpg"


def thumbnail_extension(content_type: Optional[str]) -> str:
    """MIME 타입으로 확장자 결정 (png, webp 외에는 jpg)"""
    if not content_type:
        return DEFAULT_THUMBNAIL_EXTENSION
    mime = content_type.split(";")[0].strip().lower()
    return THUMBNAIL_EXTENSIONS.get(mime, DEFAULT_THUMBNAIL_EXTENSION)


def thumbnail_path(club_id, extension: str) -> str:
    return f"{club_id}/thumbnail.{extension}"


class ThumbnailStorage:
    """동아리 썸네일 Storage"""

    def __init__(self, client: Client, bucket: Optional[str] = None):
        self.client = client
        self.bucket = bucket or get_club_settings().CLUB_THUMBNAIL_BUCKET

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def upload(self, club_id, content: bytes, content_type: Optional[str]) -> str:
        """썸네일 업로드 후 저장 경로 반환"""
        path = thumbnail_path(club_id, thumbnail_extension(content_type))
        self._bucket().upload(
            path,
            content,
            {
                "content-type": content_type or "image/jpeg",
                "upsert": "true",
            }
        )
        logger.info(f"썸네일 업로드: {self.bucket}/{path} ({len(content)} bytes)")
        return path

    def public_url(self, path: str) -> str:
        return self._bucket().get_public_url(path)

    def remove(self, path: str) -> None:
        self._bucket().remove([path])


class ThumbnailUpload:
    """업로드할 썸네일 파일"""

    def __init__(self, content: bytes, content_type: Optional[str] = None, filename: Optional[str] = None):
        self.content = content
        self.content_type = content_type
        self.filename = filename

    @property
    def size(self) -> int:
        return len(self.content)
