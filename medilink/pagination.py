"""
列表接口共用的分页 + 模糊搜索。

响应格式沿用前端约定：
  {"<items>": [...], "pagination": {"current": 1, "pages": 3, "total": 25}}
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings
from django.core.paginator import EmptyPage, Paginator
from django.db.models import Q


@dataclass
class Page:
    items: list[Any]
    current: int
    pages: int
    total: int

    def meta(self) -> dict:
        return {'current': self.current, 'pages': self.pages, 'total': self.total}


def _positive_int(value, default):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def search_q(term: str | None, fields: list[str]) -> Q:
    """任一字段 icontains term；term 为空时返回空 Q（匹配全部）。"""
    query = Q()
    if not term:
        return query
    for field in fields:
        query |= Q(**{f'{field}__icontains': term})
    return query


def paginate(queryset, page=1, limit=None) -> Page:
    limit = _positive_int(limit, settings.DEFAULT_PAGE_SIZE)
    page = _positive_int(page, 1)

    paginator = Paginator(queryset, limit)
    total = paginator.count
    try:
        items = list(paginator.page(page).object_list)
    except EmptyPage:
        items = []

    return Page(items=items, current=page, pages=paginator.num_pages if total else 0, total=total)
