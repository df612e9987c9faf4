"""
Intake 层的标准结构。

所有 Intake 的 transform() 必须返回这里的 dataclass。
业务层（services/）只消费这些结构，永远不碰原始请求体。
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class SelectedLine:
    product_id: str
    quantity: int
    product_name: str = ''          # 由 service 层查库后补上快照

    def as_dict(self) -> dict:
        return {
            'product_id': self.product_id,
            'quantity': self.quantity,
            'product_name': self.product_name,
        }


@dataclass
class RequestDraft:
    """
    诊所提交的药品请求草稿。

    photos       只有 photo 类型才有，元素是 Django UploadedFile
    raw_payload  保留原始数据，用于排查问题，不参与业务逻辑
    """

    type: str
    delivery_address: str
    patient_info: str = ''
    selected_products: list[SelectedLine] = field(default_factory=list)
    photos: list[Any] = field(default_factory=list, repr=False)
    raw_payload: Any = field(default=None, repr=False)


@dataclass
class LineAmendment:
    """药房给 photo 请求补充的订单行。"""

    selected_products: list[SelectedLine]
    raw_payload: Any = field(default=None, repr=False)


@dataclass
class ProductDraft:
    """
    药房新增/修改产品。fields 只包含本次提交的字段（更新时）。
    """

    fields: dict[str, Any]
    image: Any = field(default=None, repr=False)


@dataclass
class OrderStatusUpdate:
    """骑手提交的配送状态；estimated_delivery_time 可选，不传则保持原值。"""

    status: str
    estimated_delivery_time: datetime | None = None
    raw_payload: Any = field(default=None, repr=False)
