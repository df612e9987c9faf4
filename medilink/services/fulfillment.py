"""
Fulfillment Engine：药房确认请求 → 预留库存 → 生成订单。

整个确认在一个事务里完成，顺序是「先校验、后提交」：
  1. 锁住请求行，必须是 pending
  2. 按 selected_products 的顺序逐行预留库存
  3. 计算总价，创建 Order + OrderItem
  4. 最后才把请求改成 confirmed（按期望状态做条件更新）

任何一步失败都会整体回滚：请求仍是 pending，库存不变，没有订单。
"""

import logging

from django.conf import settings
from django.db import IntegrityError, OperationalError, connection, transaction
from django.utils import timezone

from ..auth import ROLE_PHARMACY, Principal, require_role
from ..exceptions import ConflictError, InvalidStateError, NotFoundError, UpstreamError
from ..lifecycle import ORDER_PENDING, REQUEST_CONFIRMED, REQUEST_PENDING
from ..models import DrugRequest, Order, OrderItem
from .inventory import compute_total, reserve_line

logger = logging.getLogger(__name__)


def _apply_reservation_timeout():
    """PostgreSQL 下给当前事务设置语句/锁超时，防止预留卡住。"""
    if connection.vendor != 'postgresql':
        return
    timeout_ms = int(settings.RESERVATION_TIMEOUT_MS)
    with connection.cursor() as cursor:
        cursor.execute(f'SET LOCAL statement_timeout = {timeout_ms}')
        cursor.execute(f'SET LOCAL lock_timeout = {timeout_ms}')


def _lock_pending_request(request_id) -> DrugRequest:
    try:
        request = DrugRequest.objects.select_for_update().get(pk=request_id)
    except DrugRequest.DoesNotExist:
        raise NotFoundError(
            message='Request not found',
            code='REQUEST_NOT_FOUND',
            detail={'request_id': str(request_id)},
        )

    if request.status != REQUEST_PENDING:
        raise InvalidStateError(
            message=f'Request is already {request.status}',
            code='REQUEST_NOT_PENDING',
            detail={'request_id': str(request.id), 'current_status': request.status},
        )
    return request


def confirm_request(principal: Principal, request_id) -> Order:
    """
    药房确认请求并生成订单。

    Raises:
        AuthorizationError:     不是药房
        NotFoundError:          请求或其中某个产品不存在
        InvalidStateError:      请求不是 pending（重复确认不会生成第二个订单）
        InsufficientStockError: 某一行库存不足
        ConflictError:          并发下请求状态已被别人改掉
        UpstreamError:          预留超时（RESERVATION_TIMEOUT）
    """
    require_role(principal, ROLE_PHARMACY)

    try:
        with transaction.atomic():
            _apply_reservation_timeout()
            request = _lock_pending_request(request_id)

            reserved = [
                reserve_line(line['product_id'], line['quantity'])
                for line in request.selected_products
            ]
            total = compute_total(reserved)

            order = Order.objects.create(
                request=request,
                clinic_id=request.clinic_id,
                clinic_name=request.clinic_name,
                pharmacy_id=principal.id,
                pharmacy_name=principal.name,
                total_amount=total,
                delivery_address=request.delivery_address,
                status=ORDER_PENDING,
            )
            OrderItem.objects.bulk_create([
                OrderItem(
                    order=order,
                    position=position,
                    product_id=line.product_id,
                    product_name=line.product_name,
                    quantity=line.quantity,
                    price=line.price,
                )
                for position, line in enumerate(reserved)
            ])

            updated = DrugRequest.objects.filter(pk=request.pk, status=REQUEST_PENDING).update(
                status=REQUEST_CONFIRMED,
                updated_at=timezone.now(),
            )
            if updated == 0:
                raise ConflictError(
                    message='Request changed while confirming, please reload',
                    detail={'request_id': str(request.pk)},
                )
    except IntegrityError:
        # OneToOne 唯一约束：另一个确认已经为这个请求建了订单
        raise ConflictError(
            message='Request was confirmed concurrently',
            code='ORDER_ALREADY_EXISTS',
            detail={'request_id': str(request_id)},
        )
    except OperationalError as exc:
        logger.error('Reservation for request %s timed out or failed: %s', request_id, exc)
        raise UpstreamError(
            message='Stock reservation did not complete in time, please retry',
            code='RESERVATION_TIMEOUT',
            detail={'request_id': str(request_id)},
            http_status=503,
        )

    logger.info(
        'Request %s confirmed by pharmacy %s → order %s (%d items, total=%s)',
        request_id, principal.id, order.id, len(reserved), total,
    )
    return order
