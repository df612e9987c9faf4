"""
Photo 请求的照片下载：单张原图 / 全部打包 zip。

药房可以看任意 photo 请求的照片，诊所只能看自己的。
"""

import io
import logging
import zipfile

from ..auth import ROLE_CLINIC, ROLE_PHARMACY, Principal, require_role
from ..exceptions import AuthorizationError, NotFoundError, UpstreamError
from ..lifecycle import REQUEST_TYPE_PHOTO
from ..models import DrugRequest
from ..storage import get_blob_store
from .drug_requests import get_request

logger = logging.getLogger(__name__)


def _photo_request_for(principal: Principal, request_id) -> DrugRequest:
    require_role(principal, ROLE_PHARMACY, ROLE_CLINIC)
    try:
        request = get_request(request_id)
    except NotFoundError:
        raise NotFoundError(message='Photo not found', code='PHOTO_NOT_FOUND', detail={'request_id': str(request_id)})

    if request.type != REQUEST_TYPE_PHOTO or not request.photo_urls:
        raise NotFoundError(message='Photo not found', code='PHOTO_NOT_FOUND', detail={'request_id': str(request.id)})

    if principal.role == ROLE_CLINIC and request.clinic_id != principal.id:
        raise AuthorizationError(message='Not authorized', code='NOT_REQUEST_OWNER')

    return request


def get_request_photo(principal: Principal, request_id, index: int, blob_store=None) -> tuple[bytes, str]:
    """返回 (图片字节, 下载文件名)。index 从 0 开始。"""
    request = _photo_request_for(principal, request_id)

    if index < 0 or index >= len(request.photo_urls):
        raise NotFoundError(
            message='Photo not found',
            code='PHOTO_NOT_FOUND',
            detail={'request_id': str(request.id), 'index': index, 'count': len(request.photo_urls)},
        )

    blob_store = blob_store or get_blob_store()
    content = blob_store.fetch(request.photo_urls[index])
    return content, f'drug-photo-{request.id}-{index + 1}.jpg'


def archive_request_photos(principal: Principal, request_id, blob_store=None) -> tuple[bytes, str]:
    """
    把请求的全部照片打成 zip：photo-1.jpg, photo-2.jpg, ...

    单张取回失败时跳过并记日志，其余照片照常打包。
    """
    request = _photo_request_for(principal, request_id)
    blob_store = blob_store or get_blob_store()

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        for i, url in enumerate(request.photo_urls):
            try:
                content = blob_store.fetch(url)
            except UpstreamError as exc:
                logger.warning('Skipping photo %d of request %s: %s', i + 1, request.id, exc.message)
                continue
            archive.writestr(f'photo-{i + 1}.jpg', content)

    return buffer.getvalue(), f'drug-photos-{request.id}.zip'
