"""
工厂函数：根据 settings.BLOB_STORE 返回对应的 BlobStore 实例。

新增存储只需：
  1. 在 backends.py 新建 XxxBlobStore(BaseBlobStore) 类
  2. 在此处 _build_registry 加一行
"""

from django.conf import settings

from .base import BaseBlobStore


def _build_registry() -> dict[str, type[BaseBlobStore]]:
    # 延迟导入，避免在 Django 启动前触发 SDK import
    from .backends import CloudinaryBlobStore, DjangoBlobStore

    return {
        'django':     DjangoBlobStore,
        'cloudinary': CloudinaryBlobStore,
    }


def get_blob_store() -> BaseBlobStore:
    """
    从 settings.BLOB_STORE 读取存储类型，返回对应实例。

    Raises:
        ValueError: BLOB_STORE 未知
    """
    backend = getattr(settings, 'BLOB_STORE', 'django')
    registry = _build_registry()
    store_cls = registry.get(backend)

    if store_cls is None:
        raise ValueError(
            f"Unknown BLOB_STORE: {backend!r}. "
            f"Known stores: {list(registry.keys())}"
        )

    return store_cls()
