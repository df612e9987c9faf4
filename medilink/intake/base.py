"""
BaseIntake — 所有请求体解析器的抽象基类。

每种入口只需：
1. 继承 BaseIntake
2. 实现 parse() 和 transform()
3. 在 factory.py 的 _build_registry 注册一行

字段级校验统一借用 DRF serializer，再转换成我们自己的 ValidationError。
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from rest_framework import serializers

from ..exceptions import ValidationError
from .types import SelectedLine


class SelectedLineSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


def load_json_body(raw_body: Any) -> dict:
    """bytes / str → dict；已经是 dict 的原样返回。"""
    if isinstance(raw_body, (bytes, str)):
        try:
            data = json.loads(raw_body or '{}')
        except (TypeError, ValueError):
            raise ValidationError(
                message='Request body must be valid JSON.',
                code='MALFORMED_BODY',
            )
    else:
        data = raw_body or {}

    if not isinstance(data, dict):
        raise ValidationError(
            message='Request body must be a JSON object.',
            code='MALFORMED_BODY',
        )
    return data


def pick(data: dict, *keys: str, default: Any = None) -> Any:
    """按顺序取第一个出现的 key，兼容 camelCase / snake_case 两种写法。"""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def parse_selected_lines(raw_lines: Any, field_name: str = 'selectedProducts') -> list[SelectedLine]:
    """
    校验 [{productId, quantity}, ...] 并转成 SelectedLine 列表。

    空列表或非列表直接拒绝；每一行的错误都收集到 detail.errors 里一次性返回。
    """
    if not isinstance(raw_lines, list) or len(raw_lines) == 0:
        raise ValidationError(
            message=f'{field_name} must be a non-empty array',
            code='SELECTED_PRODUCTS_REQUIRED',
        )

    normalized = []
    for item in raw_lines:
        if isinstance(item, dict):
            normalized.append({
                'product_id': pick(item, 'productId', 'product_id'),
                'quantity': pick(item, 'quantity'),
            })
        else:
            normalized.append(item)

    serializer = SelectedLineSerializer(data=normalized, many=True)
    if not serializer.is_valid():
        errors = []
        for i, item_errors in enumerate(serializer.errors):
            for field, messages in (item_errors or {}).items():
                for message in messages:
                    errors.append({'field': f'{field_name}[{i}].{field}', 'message': str(message)})
        raise ValidationError(
            message='Request validation failed.',
            code='VALIDATION_ERROR',
            detail={'errors': errors},
        )

    return [
        SelectedLine(product_id=str(line['product_id']), quantity=line['quantity'])
        for line in serializer.validated_data
    ]


class BaseIntake(ABC):
    """
    三步流水线：parse → transform → validate

    子类必须实现 parse() 和 transform()；
    validate() 默认不做额外检查，子类按需 override。
    """

    # 子类声明自己对应的入口标识（与 factory 注册键一致）
    kind: str = ''

    def __init__(self, raw_body: Any, content_type: str = '', files: Any = None):
        self._raw_body = raw_body
        self._content_type = content_type
        self._files = files

    @abstractmethod
    def parse(self) -> Any:
        """
        解析原始数据 → 中间结构（通常是 dict）。
        应将解析结果赋值给 self._parsed 以便 transform() 使用。
        """

    @abstractmethod
    def transform(self) -> Any:
        """将 self._parsed 转换为 intake/types.py 里的 dataclass。"""

    def validate(self, result: Any) -> None:
        """默认不做额外校验。"""

    def process(self) -> Any:
        """parse → transform → validate，返回校验通过的结构。"""
        self.parse()
        result = self.transform()
        self.validate(result)
        return result
