"""
具体 Intake 实现。

新增入口：在此文件添加一个类，然后在 factory.py 注册即可。

已注册入口：
  inventory  — InventoryRequestIntake  (JSON, 诊所按库存下单)
  photo      — PhotoRequestIntake      (multipart, 诊所上传处方照片)
  add_items  — AddItemsIntake          (JSON, 药房给 photo 请求补订单行)
  product    — ProductIntake           (multipart 或 JSON, 药房新增产品)
  product_update — ProductUpdateIntake (同上，只写入出现的字段)
  order_status   — OrderStatusIntake   (JSON, 骑手更新配送状态)
"""

from typing import Any

from django.conf import settings
from rest_framework import serializers

from ..exceptions import ValidationError
from ..lifecycle import REQUEST_TYPE_INVENTORY, REQUEST_TYPE_PHOTO
from .base import BaseIntake, load_json_body, parse_selected_lines, pick
from .types import LineAmendment, OrderStatusUpdate, ProductDraft, RequestDraft


def _raise_field_errors(serializer_errors) -> None:
    errors = [
        {'field': field, 'message': str(message)}
        for field, messages in serializer_errors.items()
        for message in messages
    ]
    raise ValidationError(
        message='Request validation failed.',
        code='VALIDATION_ERROR',
        detail={'errors': errors},
    )


def _require_address(address: str) -> None:
    if not address:
        raise ValidationError(
            message='deliveryAddress is required',
            code='VALIDATION_ERROR',
            detail={'errors': [{'field': 'deliveryAddress', 'message': 'This field is required.'}]},
        )


# ── InventoryRequestIntake ────────────────────────────────────────────────
#
# 外部格式示例（JSON）:
# {
#   "selectedProducts": [{"productId": "6f1c...", "quantity": 3}],
#   "deliveryAddress":  "12 Harbour Rd",
#   "patientInfo":      "Bed 4, Mr. Osei"
# }

class InventoryRequestIntake(BaseIntake):
    kind = 'inventory'

    def parse(self) -> Any:
        self._parsed = load_json_body(self._raw_body)
        return self._parsed

    def transform(self) -> RequestDraft:
        raw = self._parsed
        return RequestDraft(
            type=REQUEST_TYPE_INVENTORY,
            raw_payload=raw,
            delivery_address=str(pick(raw, 'deliveryAddress', 'delivery_address', default='')).strip(),
            patient_info=str(pick(raw, 'patientInfo', 'patient_info', default='')).strip(),
            selected_products=parse_selected_lines(pick(raw, 'selectedProducts', 'selected_products')),
        )

    def validate(self, draft: RequestDraft) -> None:
        _require_address(draft.delivery_address)


# ── PhotoRequestIntake ────────────────────────────────────────────────────
#
# multipart/form-data:
#   photos           1..PHOTO_MAX_FILES 个文件
#   deliveryAddress  文本
#   patientInfo      文本（可选）
#
# 注意：photo 请求创建时不接受 selectedProducts，只能由药房之后补充。

class PhotoRequestIntake(BaseIntake):
    kind = 'photo'

    def parse(self) -> Any:
        # multipart 表单已经由 Django 解析成 QueryDict
        self._parsed = self._raw_body if self._raw_body is not None else {}
        return self._parsed

    def transform(self) -> RequestDraft:
        raw = self._parsed
        photos = []
        if self._files is not None:
            photos = list(self._files.getlist('photos')) if hasattr(self._files, 'getlist') else list(self._files)

        return RequestDraft(
            type=REQUEST_TYPE_PHOTO,
            raw_payload={key: raw.get(key) for key in raw.keys()},
            delivery_address=(raw.get('deliveryAddress') or raw.get('delivery_address') or '').strip(),
            patient_info=(raw.get('patientInfo') or raw.get('patient_info') or '').strip(),
            photos=photos,
        )

    def validate(self, draft: RequestDraft) -> None:
        if not draft.photos:
            raise ValidationError(
                message='At least one photo file is required',
                code='PHOTO_REQUIRED',
            )
        max_files = settings.PHOTO_MAX_FILES
        if len(draft.photos) > max_files:
            raise ValidationError(
                message=f'At most {max_files} photos can be submitted',
                code='TOO_MANY_PHOTOS',
                detail={'max_files': max_files, 'submitted': len(draft.photos)},
            )
        _require_address(draft.delivery_address)


# ── AddItemsIntake ────────────────────────────────────────────────────────
#
# { "selectedProducts": [{"productId": "...", "quantity": 2}, ...] }

class AddItemsIntake(BaseIntake):
    kind = 'add_items'

    def parse(self) -> Any:
        self._parsed = load_json_body(self._raw_body)
        return self._parsed

    def transform(self) -> LineAmendment:
        raw = self._parsed
        return LineAmendment(
            raw_payload=raw,
            selected_products=parse_selected_lines(pick(raw, 'selectedProducts', 'selected_products')),
        )


# ── ProductIntake / ProductUpdateIntake ───────────────────────────────────
#
# 表单或 JSON：name, description, category, price, quantity，可选 image 文件

class ProductSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(allow_blank=True, required=False, default='')
    category = serializers.CharField(max_length=100)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    quantity = serializers.IntegerField(min_value=0)


class ProductIntake(BaseIntake):
    kind = 'product'
    partial = False

    def parse(self) -> Any:
        if self._content_type.startswith('application/json'):
            self._parsed = load_json_body(self._raw_body)
        else:
            raw = self._raw_body if self._raw_body is not None else {}
            self._parsed = {key: raw.get(key) for key in raw.keys()}
        return self._parsed

    def transform(self) -> ProductDraft:
        serializer = ProductSerializer(data=self._parsed, partial=self.partial)
        if not serializer.is_valid():
            _raise_field_errors(serializer.errors)

        image = None
        if self._files is not None and hasattr(self._files, 'get'):
            image = self._files.get('image')

        return ProductDraft(fields=dict(serializer.validated_data), image=image)


class ProductUpdateIntake(ProductIntake):
    kind = 'product_update'
    partial = True


# ── OrderStatusIntake ─────────────────────────────────────────────────────
#
# { "status": "in_transit", "estimatedDeliveryTime": "2026-10-19T15:30:00Z" }
#
# status 是否合法、能否从当前状态推进由 services/orders.py 判断。

class OrderStatusSerializer(serializers.Serializer):
    status = serializers.CharField(required=False, allow_blank=True, default='')
    estimatedDeliveryTime = serializers.DateTimeField(required=False, allow_null=True, default=None)


class OrderStatusIntake(BaseIntake):
    kind = 'order_status'

    def parse(self) -> Any:
        self._parsed = load_json_body(self._raw_body)
        return self._parsed

    def transform(self) -> OrderStatusUpdate:
        serializer = OrderStatusSerializer(data=self._parsed)
        if not serializer.is_valid():
            _raise_field_errors(serializer.errors)

        data = serializer.validated_data
        return OrderStatusUpdate(
            raw_payload=self._parsed,
            status=data['status'].strip(),
            estimated_delivery_time=data['estimatedDeliveryTime'],
        )
