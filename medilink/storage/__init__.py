from .factory import get_blob_store
from .types import BlobRef

__all__ = ['get_blob_store', 'BlobRef']
