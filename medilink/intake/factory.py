"""
工厂函数：根据入口字符串返回对应 Intake。

新增入口只需：
  1. 在 adapters.py 新建 Intake 类
  2. 在此处 _build_registry 加一行
  不需要修改任何业务代码。
"""

from typing import Any

from ..exceptions import ValidationError
from .base import BaseIntake


def _build_registry() -> dict[str, type[BaseIntake]]:
    # 延迟导入，避免循环依赖
    from .adapters import (
        AddItemsIntake,
        InventoryRequestIntake,
        OrderStatusIntake,
        PhotoRequestIntake,
        ProductIntake,
        ProductUpdateIntake,
    )

    return {
        'inventory':      InventoryRequestIntake,
        'photo':          PhotoRequestIntake,
        'add_items':      AddItemsIntake,
        'product':        ProductIntake,
        'product_update': ProductUpdateIntake,
        'order_status':   OrderStatusIntake,
    }


def get_intake(kind: str, raw_body: Any, content_type: str = '', files: Any = None) -> BaseIntake:
    """
    根据 kind 返回已实例化的 Intake。

    Args:
        kind:         入口标识，例如 "inventory"、"photo"
        raw_body:     原始请求体（bytes / str）或已解析的表单 QueryDict
        content_type: HTTP Content-Type
        files:        request.FILES（multipart 入口才有）

    Raises:
        ValidationError: 未知的 kind
    """
    registry = _build_registry()
    intake_cls = registry.get(kind)

    if intake_cls is None:
        raise ValidationError(
            message=f'Unknown intake kind: {kind!r}.',
            code='UNKNOWN_INTAKE',
            detail={'known_kinds': list(registry.keys())},
        )

    return intake_cls(raw_body=raw_body, content_type=content_type, files=files)
