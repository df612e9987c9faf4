"""
Inventory Ledger：每个产品的可用库存。

库存只能通过 reserve_line() 扣减，扣减前必须确认足够：
一条 UPDATE ... WHERE quantity >= q 同时完成「读-判断-写」，
并发确认同一产品时不会超卖，quantity 永远 >= 0。
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from ..auth import ROLE_PHARMACY, Principal, require_role
from ..exceptions import InsufficientStockError, NotFoundError, UpstreamError
from ..models import Product
from ..pagination import Page, paginate, search_q
from ..storage import get_blob_store

logger = logging.getLogger(__name__)


@dataclass
class ReservedLine:
    """预留成功的一行，name/price 是预留那一刻的快照。"""

    product_id: str
    product_name: str
    quantity: int
    price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


def reserve_line(product_id, quantity: int) -> ReservedLine:
    """
    原子扣减一行库存。

    Raises:
        NotFoundError:          产品不存在
        InsufficientStockError: 库存不足（库存保持不变）
    """
    updated = Product.objects.filter(pk=product_id, quantity__gte=quantity).update(
        quantity=F('quantity') - quantity,
        updated_at=timezone.now(),
    )

    if updated == 0:
        product = Product.objects.filter(pk=product_id).values('name', 'quantity').first()
        if product is None:
            raise NotFoundError(
                message=f'Product {product_id} not found',
                code='PRODUCT_NOT_FOUND',
                detail={'product_id': str(product_id)},
            )
        raise InsufficientStockError(
            message=f"Insufficient stock for {product['name']}",
            detail={
                'product_id': str(product_id),
                'product_name': product['name'],
                'requested': quantity,
                'available': product['quantity'],
            },
        )

    snapshot = Product.objects.values('name', 'price').get(pk=product_id)
    return ReservedLine(
        product_id=str(product_id),
        product_name=snapshot['name'],
        quantity=quantity,
        price=snapshot['price'],
    )


def compute_total(lines) -> Decimal:
    return sum((line.line_total for line in lines), Decimal('0.00'))


# ---------------------------------------------------------------------------
# 药房产品管理
# ---------------------------------------------------------------------------

def _schedule_blob_delete(url: str) -> None:
    """事务提交后异步删除旧图片；失败只记日志。"""
    if not url:
        return
    from ..tasks import delete_blob

    transaction.on_commit(lambda: delete_blob.delay(url))


def _upload_best_effort(image, blob_store) -> str | None:
    """上传失败不阻塞产品保存，返回 None 表示没有新图。"""
    if image is None:
        return None
    try:
        return blob_store.upload(image).url
    except UpstreamError as exc:
        logger.warning('Image upload failed, proceeding without image: %s', exc.message)
        return None


def _get_own_product(principal: Principal, product_id) -> Product:
    try:
        return Product.objects.get(pk=product_id, pharmacy_id=principal.id)
    except Product.DoesNotExist:
        raise NotFoundError(
            message='Product not found or you do not have permission',
            code='PRODUCT_NOT_FOUND',
            detail={'product_id': str(product_id)},
        )


def list_products(principal: Principal, search=None, category=None, page=1, limit=None) -> Page:
    require_role(principal, ROLE_PHARMACY)
    queryset = Product.objects.filter(pharmacy_id=principal.id).filter(search_q(search, ['name', 'description']))
    if category:
        queryset = queryset.filter(category=category)
    return paginate(queryset.order_by('-created_at'), page, limit)


def add_product(principal: Principal, draft, blob_store=None) -> Product:
    require_role(principal, ROLE_PHARMACY)
    blob_store = blob_store or get_blob_store()

    image_url = _upload_best_effort(draft.image, blob_store) or ''
    product = Product.objects.create(pharmacy_id=principal.id, image_url=image_url, **draft.fields)
    logger.info('Product %s added by pharmacy %s (qty=%s)', product.id, principal.id, product.quantity)
    return product


def update_product(principal: Principal, product_id, draft, blob_store=None) -> Product:
    require_role(principal, ROLE_PHARMACY)
    blob_store = blob_store or get_blob_store()
    product = _get_own_product(principal, product_id)

    for field, value in draft.fields.items():
        setattr(product, field, value)

    # 只写入本次提交的字段，避免覆盖并发预留刚扣过的 quantity
    update_fields = list(draft.fields) + ['updated_at']

    new_url = _upload_best_effort(draft.image, blob_store)
    old_url = product.image_url
    if new_url:
        product.image_url = new_url
        update_fields.append('image_url')

    with transaction.atomic():
        product.save(update_fields=update_fields)
        if new_url and old_url:
            _schedule_blob_delete(old_url)

    logger.info('Product %s updated by pharmacy %s', product.id, principal.id)
    return product


def delete_product(principal: Principal, product_id) -> None:
    require_role(principal, ROLE_PHARMACY)
    product = _get_own_product(principal, product_id)

    with transaction.atomic():
        image_url = product.image_url
        product.delete()
        _schedule_blob_delete(image_url)

    logger.info('Product %s deleted by pharmacy %s', product_id, principal.id)
