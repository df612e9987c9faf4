"""
Request Store：DrugRequest 的创建、药房补充订单行、拒绝，以及各角色的列表。

确认（confirm）不在这里，见 services/fulfillment.py。
"""

import logging

from django.utils import timezone

from ..auth import ROLE_CLINIC, ROLE_PHARMACY, Principal, require_role
from ..exceptions import ConflictError, InvalidStateError, NotFoundError, UpstreamError, ValidationError
from ..lifecycle import (
    REJECTABLE_REQUEST_STATUSES,
    REQUEST_PENDING,
    REQUEST_REJECTED,
    REQUEST_TYPE_INVENTORY,
    REQUEST_TYPE_PHOTO,
)
from ..models import DrugRequest, Order, Product
from ..pagination import Page, paginate, search_q
from ..storage import get_blob_store

logger = logging.getLogger(__name__)


def get_request(request_id) -> DrugRequest:
    """Get request by ID. Raises NotFoundError if not found."""
    try:
        return DrugRequest.objects.get(pk=request_id)
    except DrugRequest.DoesNotExist:
        raise NotFoundError(
            message='Request not found',
            code='REQUEST_NOT_FOUND',
            detail={'request_id': str(request_id)},
        )


def enrich_lines(lines) -> list[dict]:
    """
    给每一行补上当前的 product_name 快照。

    任意一个 product 不存在 → ValidationError，调用方什么都不写。
    """
    products = Product.objects.in_bulk([line.product_id for line in lines])
    products = {str(pk): product for pk, product in products.items()}

    missing = [line.product_id for line in lines if line.product_id not in products]
    if missing:
        raise ValidationError(
            message=f'Product {missing[0]} not found',
            code='PRODUCT_NOT_FOUND',
            detail={'missing_product_ids': missing},
        )

    enriched = []
    for line in lines:
        line.product_name = products[line.product_id].name
        enriched.append(line.as_dict())
    return enriched


def create_inventory_request(principal: Principal, draft) -> DrugRequest:
    """
    诊所按库存下单。selected_products 必须非空且每个产品都存在。
    """
    require_role(principal, ROLE_CLINIC)

    if draft.type != REQUEST_TYPE_INVENTORY:
        raise ValidationError(message='Draft is not an inventory request', code='WRONG_REQUEST_TYPE')
    if not draft.selected_products:
        raise ValidationError(
            message='selectedProducts must be a non-empty array',
            code='SELECTED_PRODUCTS_REQUIRED',
        )

    selected = enrich_lines(draft.selected_products)

    request = DrugRequest.objects.create(
        clinic_id=principal.id,
        clinic_name=principal.name,
        type=REQUEST_TYPE_INVENTORY,
        selected_products=selected,
        delivery_address=draft.delivery_address,
        patient_info=draft.patient_info,
    )
    logger.info('Inventory request %s created by clinic %s (%d lines)', request.id, principal.id, len(selected))
    return request


def create_photo_request(principal: Principal, draft, blob_store=None) -> DrugRequest:
    """
    诊所上传处方照片下单。

    - 0 个文件 → ValidationError，不建记录
    - 单个文件上传失败只记日志，继续处理其他文件
    - 全部上传失败 → UpstreamError，不建记录
    """
    require_role(principal, ROLE_CLINIC)

    if draft.type != REQUEST_TYPE_PHOTO:
        raise ValidationError(message='Draft is not a photo request', code='WRONG_REQUEST_TYPE')
    if not draft.photos:
        raise ValidationError(message='At least one photo file is required', code='PHOTO_REQUIRED')

    blob_store = blob_store or get_blob_store()

    photo_urls = []
    for photo in draft.photos:
        try:
            photo_urls.append(blob_store.upload(photo).url)
        except UpstreamError as exc:
            logger.warning('Photo upload failed for clinic %s: %s', principal.id, exc.message)

    if not photo_urls:
        raise UpstreamError(
            message='Photo upload failed, no photos could be stored',
            code='PHOTO_UPLOAD_FAILED',
            detail={'submitted': len(draft.photos)},
        )

    request = DrugRequest.objects.create(
        clinic_id=principal.id,
        clinic_name=principal.name,
        type=REQUEST_TYPE_PHOTO,
        photo_urls=photo_urls,
        delivery_address=draft.delivery_address,
        patient_info=draft.patient_info,
    )
    logger.info(
        'Photo request %s created by clinic %s (%d/%d photos stored)',
        request.id, principal.id, len(photo_urls), len(draft.photos),
    )
    return request


def amend_photo_request_items(principal: Principal, request_id, amendment) -> DrugRequest:
    """
    药房给 photo 请求补充订单行（替换 selected_products）。

    任何药房账号都可以操作任意 photo 请求；请求必须仍是 pending。
    """
    require_role(principal, ROLE_PHARMACY)
    request = get_request(request_id)

    if request.type != REQUEST_TYPE_PHOTO:
        raise InvalidStateError(
            message='Only photo requests can have items added',
            code='NOT_A_PHOTO_REQUEST',
            detail={'request_id': str(request.id), 'type': request.type},
        )
    if request.status != REQUEST_PENDING:
        raise InvalidStateError(
            message=f'Cannot add items to a {request.status} request',
            code='REQUEST_NOT_PENDING',
            detail={'request_id': str(request.id), 'current_status': request.status},
        )
    if not amendment.selected_products:
        raise ValidationError(
            message='selectedProducts must be a non-empty array',
            code='SELECTED_PRODUCTS_REQUIRED',
        )

    selected = enrich_lines(amendment.selected_products)

    updated = DrugRequest.objects.filter(
        pk=request.pk, type=REQUEST_TYPE_PHOTO, status=REQUEST_PENDING,
    ).update(selected_products=selected, updated_at=timezone.now())
    if updated == 0:
        raise ConflictError(
            message='Request changed while adding items, please reload',
            detail={'request_id': str(request.id)},
        )

    request.refresh_from_db()
    logger.info('Pharmacy %s set %d lines on photo request %s', principal.id, len(selected), request.id)
    return request


def reject_request(principal: Principal, request_id, reason: str | None) -> DrugRequest:
    """
    药房拒绝请求。pending 或已 rejected 的请求都可以（重复拒绝时后写的 reason 生效）。
    """
    require_role(principal, ROLE_PHARMACY)
    request = get_request(request_id)

    if request.status not in REJECTABLE_REQUEST_STATUSES:
        raise InvalidStateError(
            message=f'Cannot reject a {request.status} request',
            code='REQUEST_NOT_REJECTABLE',
            detail={'request_id': str(request.id), 'current_status': request.status},
        )

    updated = DrugRequest.objects.filter(pk=request.pk, status=request.status).update(
        status=REQUEST_REJECTED,
        rejection_reason=reason or '',
        updated_at=timezone.now(),
    )
    if updated == 0:
        raise ConflictError(
            message='Request changed while rejecting, please reload',
            detail={'request_id': str(request.id), 'expected_status': request.status},
        )

    request.refresh_from_db()
    logger.info('Request %s rejected by pharmacy %s', request.id, principal.id)
    return request


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

def list_pending_requests(principal: Principal, search=None, filter=None, page=1, limit=None) -> Page:
    """药房待处理列表。filter 只接受 photo / inventory。"""
    require_role(principal, ROLE_PHARMACY)
    queryset = DrugRequest.objects.filter(status=REQUEST_PENDING).filter(
        search_q(search, ['clinic_name', 'delivery_address', 'patient_info'])
    )
    if filter in (REQUEST_TYPE_PHOTO, REQUEST_TYPE_INVENTORY):
        queryset = queryset.filter(type=filter)
    return paginate(queryset.order_by('-created_at'), page, limit)


def list_clinic_requests(principal: Principal, search=None, filter=None, page=1, limit=None) -> Page:
    """诊所自己的全部请求。filter 按 status。"""
    require_role(principal, ROLE_CLINIC)
    queryset = DrugRequest.objects.filter(clinic_id=principal.id).filter(
        search_q(search, ['delivery_address', 'patient_info'])
    )
    if filter:
        queryset = queryset.filter(status=filter)
    return paginate(queryset.order_by('-created_at'), page, limit)


def clinic_request_history(principal: Principal, search=None, filter=None, page=1, limit=None) -> Page:
    """
    诊所历史：排除 pending，按 updated_at 倒序，已有订单的附带订单。

    filter 是 photo / inventory 时按类型，否则按 status。
    """
    require_role(principal, ROLE_CLINIC)
    queryset = (
        DrugRequest.objects.filter(clinic_id=principal.id)
        .exclude(status=REQUEST_PENDING)
        .filter(search_q(search, ['delivery_address', 'patient_info', 'rejection_reason']))
    )
    if filter in (REQUEST_TYPE_PHOTO, REQUEST_TYPE_INVENTORY):
        queryset = queryset.filter(type=filter)
    elif filter:
        queryset = queryset.filter(status=filter)

    queryset = queryset.select_related('order').prefetch_related('order__items')
    return paginate(queryset.order_by('-updated_at'), page, limit)


def order_for_request(request: DrugRequest) -> Order | None:
    try:
        return request.order
    except Order.DoesNotExist:
        return None
