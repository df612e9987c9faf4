"""
BlobStore 工厂 + 两个实现。

Cloudinary SDK 和 requests 都被 mock 掉，不发网络请求。
"""
from unittest.mock import MagicMock, patch

import pytest
import requests
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings

from medilink.exceptions import UpstreamError
from medilink.storage import get_blob_store
from medilink.storage.backends import CloudinaryBlobStore, DjangoBlobStore


class TestFactory:

    @override_settings(BLOB_STORE='django')
    def test_django(self):
        assert isinstance(get_blob_store(), DjangoBlobStore)

    @override_settings(BLOB_STORE='cloudinary')
    def test_cloudinary(self):
        assert isinstance(get_blob_store(), CloudinaryBlobStore)

    @override_settings(BLOB_STORE='s3')
    def test_unknown(self):
        with pytest.raises(ValueError, match='s3'):
            get_blob_store()


class TestDjangoBlobStore:

    def test_upload_fetch_delete(self):
        store = DjangoBlobStore()

        ref = store.upload(SimpleUploadedFile('rx.jpg', b'jpeg-bytes'))

        assert ref.url.startswith('/media/medilink/')
        assert ref.url.endswith('-rx.jpg')
        assert store.id_from_url(ref.url) == ref.public_id
        assert store.fetch(ref.url) == b'jpeg-bytes'

        store.delete(ref.url)
        with pytest.raises(UpstreamError) as exc_info:
            store.fetch(ref.url)
        assert exc_info.value.code == 'BLOB_FETCH_FAILED'

    def test_foreign_url_not_recognised(self):
        assert DjangoBlobStore().id_from_url('https://elsewhere.test/a.jpg') is None

    @patch('medilink.storage.backends.requests.get')
    def test_fetch_foreign_url_downloads(self, mock_get):
        mock_get.return_value.content = b'remote'
        assert DjangoBlobStore().fetch('https://elsewhere.test/a.jpg') == b'remote'
        mock_get.assert_called_once()

    @patch('medilink.storage.backends.requests.get', side_effect=requests.ConnectionError('down'))
    def test_download_failure(self, mock_get):
        with pytest.raises(UpstreamError) as exc_info:
            DjangoBlobStore().fetch('https://elsewhere.test/a.jpg')
        assert exc_info.value.code == 'BLOB_FETCH_FAILED'


class TestCloudinaryBlobStore:

    @pytest.mark.parametrize('url, expected', [
        ('https://res.cloudinary.com/demo/image/upload/v1712345678/medilink/abc123.jpg', 'medilink/abc123'),
        ('https://res.cloudinary.com/demo/image/upload/medilink/abc123.png', 'medilink/abc123'),
        ('medilink/abc123', None),
    ])
    def test_id_from_url(self, url, expected):
        assert CloudinaryBlobStore().id_from_url(url) == expected

    @patch('cloudinary.uploader.upload')
    def test_upload(self, mock_upload):
        mock_upload.return_value = {
            'secure_url': 'https://res.cloudinary.com/demo/image/upload/v1/medilink/x.jpg',
            'public_id': 'medilink/x',
        }
        ref = CloudinaryBlobStore().upload(SimpleUploadedFile('x.jpg', b'img'))

        assert ref.public_id == 'medilink/x'
        assert mock_upload.call_args.kwargs['folder'] == 'medilink'

    @patch('cloudinary.uploader.upload')
    def test_upload_error_wrapped(self, mock_upload):
        import cloudinary.exceptions

        mock_upload.side_effect = cloudinary.exceptions.Error('quota')
        with pytest.raises(UpstreamError) as exc_info:
            CloudinaryBlobStore().upload(SimpleUploadedFile('x.jpg', b'img'))
        assert exc_info.value.code == 'BLOB_UPLOAD_FAILED'

    @patch('cloudinary.uploader.destroy')
    def test_delete_by_url(self, mock_destroy):
        CloudinaryBlobStore().delete('https://res.cloudinary.com/demo/image/upload/v1/medilink/x.jpg')
        mock_destroy.assert_called_once_with('medilink/x')

    @patch('medilink.storage.backends.requests.get')
    def test_fetch_forces_jpg_attachment(self, mock_get):
        mock_get.return_value = MagicMock(content=b'jpg')
        CloudinaryBlobStore().fetch('https://res.cloudinary.com/demo/image/upload/v1/medilink/x.png')

        called_url = mock_get.call_args.args[0]
        assert '/image/upload/fl_attachment:f_jpg,q_100/v1/medilink/x.png' in called_url
