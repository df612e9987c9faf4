"""
Request / Order 状态机。

DrugRequest:
    pending ──confirm──> confirmed ──(mirrored from order)──> assigned ─> picked_up ─> in_transit ─> delivered
       │
       └──reject──> rejected   (re-reject 允许，覆盖 reason)

Order:
    pending ──accept──> assigned ──rider update──> picked_up / in_transit / delivered

rejected 与 delivered 为终态。
"""

REQUEST_PENDING = 'pending'
REQUEST_CONFIRMED = 'confirmed'
REQUEST_REJECTED = 'rejected'

ORDER_PENDING = 'pending'
ORDER_ASSIGNED = 'assigned'
ORDER_PICKED_UP = 'picked_up'
ORDER_IN_TRANSIT = 'in_transit'
ORDER_DELIVERED = 'delivered'

REQUEST_TYPE_PHOTO = 'photo'
REQUEST_TYPE_INVENTORY = 'inventory'

REQUEST_TYPE_CHOICES = [
    (REQUEST_TYPE_PHOTO, 'Photo'),
    (REQUEST_TYPE_INVENTORY, 'Inventory'),
]

REQUEST_STATUS_CHOICES = [
    (REQUEST_PENDING, 'Pending'),
    (REQUEST_CONFIRMED, 'Confirmed'),
    (REQUEST_REJECTED, 'Rejected'),
    (ORDER_ASSIGNED, 'Assigned'),
    (ORDER_PICKED_UP, 'Picked up'),
    (ORDER_IN_TRANSIT, 'In transit'),
    (ORDER_DELIVERED, 'Delivered'),
]

ORDER_STATUS_CHOICES = [
    (ORDER_PENDING, 'Pending'),
    (ORDER_ASSIGNED, 'Assigned'),
    (ORDER_PICKED_UP, 'Picked up'),
    (ORDER_IN_TRANSIT, 'In transit'),
    (ORDER_DELIVERED, 'Delivered'),
]

# 骑手可以直接设置的状态，按配送顺序排列
ORDER_DELIVERY_SEQUENCE = [ORDER_ASSIGNED, ORDER_PICKED_UP, ORDER_IN_TRANSIT, ORDER_DELIVERED]
RIDER_SETTABLE_STATUSES = ORDER_DELIVERY_SEQUENCE[1:]

# 可以被 reject 的请求状态（重复 reject 覆盖 reason）
REJECTABLE_REQUEST_STATUSES = [REQUEST_PENDING, REQUEST_REJECTED]


def is_forward_delivery_step(current: str, new: str) -> bool:
    """
    new 是否在配送序列中严格位于 current 之后。

    允许跳步（assigned → delivered），不允许原地或回退。
    """
    if current not in ORDER_DELIVERY_SEQUENCE or new not in ORDER_DELIVERY_SEQUENCE:
        return False
    return ORDER_DELIVERY_SEQUENCE.index(new) > ORDER_DELIVERY_SEQUENCE.index(current)
