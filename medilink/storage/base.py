"""
BaseBlobStore — 所有图片存储实现的抽象基类。

每个新存储只需：
1. 继承 BaseBlobStore
2. 实现 upload() / delete() / id_from_url() / fetch()
3. 在 factory.py 的 _build_registry 注册一行

services 完全不知道背后用哪家存储。
"""

from abc import ABC, abstractmethod

from .types import BlobRef


class BaseBlobStore(ABC):

    @abstractmethod
    def upload(self, file) -> BlobRef:
        """
        上传一个文件（Django UploadedFile 或类文件对象）。

        Raises:
            UpstreamError: 上传失败
        """

    @abstractmethod
    def delete(self, public_id_or_url: str) -> None:
        """
        删除一个 blob。

        Raises:
            UpstreamError: 删除失败（调用方按 best-effort 处理）
        """

    @abstractmethod
    def id_from_url(self, url: str) -> str | None:
        """从 url 反推 public_id；识别不了返回 None。"""

    @abstractmethod
    def fetch(self, url: str) -> bytes:
        """
        取回 blob 原始字节，用于照片下载。

        Raises:
            UpstreamError: 取回失败
        """
