"""
Order Store：骑手接单、更新配送状态，以及订单列表。

每次状态变更都是「期望当前状态」的条件更新，
并在同一事务里把状态镜像到对应的 DrugRequest 上。
"""

import logging

from django.db import transaction
from django.utils import timezone

from ..auth import ROLE_CLINIC, ROLE_PHARMACY, ROLE_RIDER, Principal, require_role
from ..exceptions import AuthorizationError, ConflictError, InvalidStateError, NotFoundError, ValidationError
from ..lifecycle import (
    ORDER_ASSIGNED,
    ORDER_PENDING,
    RIDER_SETTABLE_STATUSES,
    is_forward_delivery_step,
)
from ..models import DrugRequest, Order
from ..pagination import Page, paginate, search_q

logger = logging.getLogger(__name__)


def get_order(order_id) -> Order:
    """Get order by ID. Raises NotFoundError if not found."""
    try:
        return Order.objects.get(pk=order_id)
    except Order.DoesNotExist:
        raise NotFoundError(
            message='Order not found',
            code='ORDER_NOT_FOUND',
            detail={'order_id': str(order_id)},
        )


def _mirror_request_status(order: Order, status: str) -> None:
    DrugRequest.objects.filter(pk=order.request_id).update(status=status, updated_at=timezone.now())


def accept_order(principal: Principal, order_id) -> Order:
    """
    骑手接单：只有 pending 的订单可以被接。

    已被其他骑手接走 → InvalidStateError（不会覆盖 rider_id）。
    """
    require_role(principal, ROLE_RIDER)

    with transaction.atomic():
        updated = Order.objects.filter(pk=order_id, status=ORDER_PENDING).update(
            rider_id=principal.id,
            rider_name=principal.name,
            status=ORDER_ASSIGNED,
            updated_at=timezone.now(),
        )
        order = get_order(order_id)

        if updated == 0:
            raise InvalidStateError(
                message=f'Order is no longer available (status: {order.status})',
                code='ORDER_NOT_AVAILABLE',
                detail={'order_id': str(order.id), 'current_status': order.status},
            )

        _mirror_request_status(order, ORDER_ASSIGNED)

    logger.info('Order %s accepted by rider %s', order.id, principal.id)
    return order


def update_order_status(principal: Principal, order_id, new_status: str, estimated_delivery_time=None) -> Order:
    """
    骑手推进配送状态：assigned → picked_up → in_transit → delivered。

    - 还没被接单（pending）的订单不能推进
    - 只有接单的骑手本人可以更新
    - 只能往后走（可以跳步），不能原地或回退
    - estimated_delivery_time 可选，随状态一起写入
    """
    require_role(principal, ROLE_RIDER)

    if new_status not in RIDER_SETTABLE_STATUSES:
        raise ValidationError(
            message=f'Invalid order status {new_status!r}',
            code='INVALID_ORDER_STATUS',
            detail={'allowed': RIDER_SETTABLE_STATUSES},
        )

    with transaction.atomic():
        order = get_order(order_id)

        if order.status == ORDER_PENDING:
            raise InvalidStateError(
                message='Order has not been accepted by a rider yet',
                code='ORDER_NOT_ASSIGNED',
                detail={'order_id': str(order.id), 'current_status': order.status},
            )
        if order.rider_id != principal.id:
            raise AuthorizationError(
                message='Only the rider holding this order can update it',
                code='NOT_ORDER_RIDER',
                detail={'order_id': str(order.id)},
            )
        if not is_forward_delivery_step(order.status, new_status):
            raise InvalidStateError(
                message=f'Cannot move order from {order.status} to {new_status}',
                code='ILLEGAL_STATUS_TRANSITION',
                detail={'order_id': str(order.id), 'current_status': order.status, 'requested_status': new_status},
            )

        changes = {'status': new_status, 'updated_at': timezone.now()}
        if estimated_delivery_time is not None:
            changes['estimated_delivery_time'] = estimated_delivery_time

        updated = Order.objects.filter(pk=order.pk, status=order.status, rider_id=principal.id).update(**changes)
        if updated == 0:
            raise ConflictError(
                message='Order changed while updating, please reload',
                detail={'order_id': str(order.id), 'expected_status': order.status},
            )

        _mirror_request_status(order, new_status)
        order.refresh_from_db()

    logger.info('Order %s moved to %s by rider %s', order.id, new_status, principal.id)
    return order


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

def list_available_orders(principal: Principal, search=None, filter=None, page=1, limit=None) -> Page:
    """骑手可接的订单（默认 pending）。"""
    require_role(principal, ROLE_RIDER)
    status = filter if filter else ORDER_PENDING
    queryset = (
        Order.objects.filter(status=status)
        .filter(search_q(search, ['delivery_address']))
        .prefetch_related('items')
    )
    return paginate(queryset.order_by('-created_at'), page, limit)


def list_user_orders(principal: Principal, search=None, filter=None, page=1, limit=None) -> Page:
    """
    当前账号相关的订单：
      rider   : 自己接的
      clinic  : 自己诊所的
      pharmacy: 自己确认的
    """
    scope = {
        ROLE_RIDER: {'rider_id': principal.id},
        ROLE_CLINIC: {'clinic_id': principal.id},
        ROLE_PHARMACY: {'pharmacy_id': principal.id},
    }[principal.role]

    queryset = (
        Order.objects.filter(**scope)
        .filter(search_q(search, ['delivery_address']))
        .select_related('request')
        .prefetch_related('items')
    )
    if filter:
        queryset = queryset.filter(status=filter)
    return paginate(queryset.order_by('-created_at'), page, limit)
