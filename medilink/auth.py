"""
认证由上游网关负责（登录、签发 token 都不在本服务内）。

网关校验通过后把身份写进请求头：
  X-Principal-Id:   账号 UUID
  X-Principal-Role: clinic / pharmacy / rider
  X-Principal-Name: 显示名（诊所名、药房名、骑手名）

本模块只负责读取这些头，并按角色做授权判断。
"""

import uuid
from dataclasses import dataclass

from .exceptions import AuthorizationError

ROLE_CLINIC = 'clinic'
ROLE_PHARMACY = 'pharmacy'
ROLE_RIDER = 'rider'
ROLES = (ROLE_CLINIC, ROLE_PHARMACY, ROLE_RIDER)


@dataclass(frozen=True)
class Principal:
    id: uuid.UUID
    role: str
    name: str = ''


def principal_from_request(request) -> Principal:
    """Read the gateway-supplied principal. Raises AuthorizationError (401) if absent or malformed."""
    raw_id = request.headers.get('X-Principal-Id', '').strip()
    role = request.headers.get('X-Principal-Role', '').strip().lower()
    name = request.headers.get('X-Principal-Name', '').strip()

    if not raw_id or not role:
        raise AuthorizationError(
            message='Not authorized, no principal',
            code='NOT_AUTHENTICATED',
            http_status=401,
        )

    try:
        principal_id = uuid.UUID(raw_id)
    except ValueError:
        raise AuthorizationError(
            message='Not authorized, malformed principal id',
            code='NOT_AUTHENTICATED',
            http_status=401,
        )

    if role not in ROLES:
        raise AuthorizationError(
            message=f'Unknown role {role!r}',
            code='NOT_AUTHENTICATED',
            http_status=401,
        )

    return Principal(id=principal_id, role=role, name=name)


def require_role(principal: Principal, *roles: str) -> None:
    if principal.role not in roles:
        raise AuthorizationError(
            message=f'User role {principal.role} is not authorized to access this resource',
            code='ROLE_NOT_ALLOWED',
            detail={'role': principal.role, 'allowed_roles': list(roles)},
        )
