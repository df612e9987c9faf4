"""
具体 BlobStore 实现。

已注册存储：
  django     — DjangoBlobStore      (default_storage，本地磁盘 / 任意 Django storage)
  cloudinary — CloudinaryBlobStore  (Cloudinary SDK)
"""

import logging
import os
import re
import uuid

import requests
from django.conf import settings
from django.core.files.storage import default_storage

from ..exceptions import UpstreamError
from .base import BaseBlobStore
from .types import BlobRef

logger = logging.getLogger(__name__)


def _download(url: str) -> bytes:
    try:
        response = requests.get(url, timeout=settings.PHOTO_FETCH_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise UpstreamError(
            message=f'Failed to fetch image: {exc}',
            code='BLOB_FETCH_FAILED',
            detail={'url': url},
        )
    return response.content


# ── DjangoBlobStore ───────────────────────────────────────────────────────
#
# 存到 default_storage（默认 MEDIA_ROOT 下的 medilink/ 目录）。
# public_id 就是 storage 里的相对路径。

class DjangoBlobStore(BaseBlobStore):

    FOLDER = 'medilink'

    def upload(self, file) -> BlobRef:
        original = os.path.basename(getattr(file, 'name', '') or 'upload.bin')
        name = f'{self.FOLDER}/{uuid.uuid4().hex}-{original}'
        try:
            saved = default_storage.save(name, file)
        except OSError as exc:
            raise UpstreamError(message='Image upload failed', code='BLOB_UPLOAD_FAILED', detail={'error': str(exc)})
        return BlobRef(url=default_storage.url(saved), public_id=saved)

    def delete(self, public_id_or_url: str) -> None:
        public_id = self.id_from_url(public_id_or_url) or public_id_or_url
        try:
            default_storage.delete(public_id)
        except OSError as exc:
            raise UpstreamError(message='Image delete failed', code='BLOB_DELETE_FAILED', detail={'error': str(exc)})

    def id_from_url(self, url: str) -> str | None:
        media_url = settings.MEDIA_URL
        if url.startswith(media_url):
            return url[len(media_url):]
        return None

    def fetch(self, url: str) -> bytes:
        public_id = self.id_from_url(url)
        if public_id is None:
            return _download(url)
        try:
            with default_storage.open(public_id, 'rb') as fh:
                return fh.read()
        except OSError as exc:
            raise UpstreamError(
                message=f'Failed to fetch image: {exc}',
                code='BLOB_FETCH_FAILED',
                detail={'url': url},
            )


# ── CloudinaryBlobStore ───────────────────────────────────────────────────
#
# 环境变量：CLOUDINARY_CLOUD_NAME / CLOUDINARY_API_KEY / CLOUDINARY_API_SECRET
# 上传到 CLOUDINARY_FOLDER（默认 medilink）

# .../image/upload/v1712345678/medilink/abc123.jpg → medilink/abc123
CLOUDINARY_ID_RE = re.compile(r'/upload/(?:[^/]+/)*?(?:v\d+/)?([^?#]+?)(?:\.[A-Za-z0-9]+)?(?:[?#].*)?$')


class CloudinaryBlobStore(BaseBlobStore):

    def _configure(self):
        import cloudinary

        cloudinary.config(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            secure=True,
        )

    def upload(self, file) -> BlobRef:
        import cloudinary.exceptions
        import cloudinary.uploader

        self._configure()
        try:
            result = cloudinary.uploader.upload(
                file,
                folder=settings.CLOUDINARY_FOLDER,
                resource_type='auto',
            )
        except cloudinary.exceptions.Error as exc:
            logger.warning('Cloudinary upload error: %s', exc)
            raise UpstreamError(message='Image upload failed', code='BLOB_UPLOAD_FAILED', detail={'error': str(exc)})

        return BlobRef(url=result['secure_url'], public_id=result['public_id'])

    def delete(self, public_id_or_url: str) -> None:
        import cloudinary.exceptions
        import cloudinary.uploader

        public_id = self.id_from_url(public_id_or_url) or public_id_or_url
        self._configure()
        try:
            cloudinary.uploader.destroy(public_id)
        except cloudinary.exceptions.Error as exc:
            raise UpstreamError(message='Image delete failed', code='BLOB_DELETE_FAILED', detail={'error': str(exc)})

    def id_from_url(self, url: str) -> str | None:
        if '://' not in url:
            return None
        match = CLOUDINARY_ID_RE.search(url)
        return match.group(1) if match else None

    def fetch(self, url: str) -> bytes:
        # 强制以 jpg 附件形式下载
        download_url = re.sub(r'/image/upload/(?!f_)', '/image/upload/fl_attachment:f_jpg,q_100/', url)
        return _download(download_url)
