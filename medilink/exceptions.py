"""
统一异常体系。

所有业务异常继承 BaseAppException，包含：
- type:        错误类型标识（validation_error / not_found / invalid_state / ...）
- code:        业务错误码（PRODUCT_NOT_FOUND / REQUEST_NOT_PENDING / ...）
- message:     人类可读的描述
- detail:      可选的附加信息（dict / list / None）
- http_status: HTTP 状态码

Service 层只需 raise，View 上的 ExceptionHandlerMixin 统一捕获并格式化响应。
"""


class BaseAppException(Exception):
    """所有业务异常的基类。"""

    type = 'error'
    code = 'UNKNOWN_ERROR'
    http_status = 500

    def __init__(self, message, code=None, detail=None, http_status=None):
        self.message = message
        if code is not None:
            self.code = code
        if http_status is not None:
            self.http_status = http_status
        self.detail = detail
        super().__init__(message)


class ValidationError(BaseAppException):
    """输入缺失或格式错误。不做任何写操作，400。"""

    type = 'validation_error'
    code = 'VALIDATION_ERROR'
    http_status = 400


class AuthorizationError(BaseAppException):
    """角色或归属不匹配，403（未带身份时 401）。"""

    type = 'authorization_error'
    code = 'NOT_AUTHORIZED'
    http_status = 403


class NotFoundError(BaseAppException):
    """引用的实体不存在，404。"""

    type = 'not_found'
    code = 'NOT_FOUND'
    http_status = 404


class InvalidStateError(BaseAppException):
    """当前生命周期状态下不允许该操作，409。"""

    type = 'invalid_state'
    code = 'INVALID_STATE'
    http_status = 409


class ConflictError(BaseAppException):
    """
    并发冲突：按「期望的当前状态」做条件更新时没有命中任何行。

    说明读取之后记录已被别的请求改过，调用方可以重新读取后再决定。
    """

    type = 'conflict'
    code = 'CONCURRENT_UPDATE'
    http_status = 409


class InsufficientStockError(BaseAppException):
    """预留会让库存变成负数。detail 里带上出问题的产品。"""

    type = 'insufficient_stock'
    code = 'INSUFFICIENT_STOCK'
    http_status = 409


class UpstreamError(BaseAppException):
    """Blob store 或其他外部调用失败，502。"""

    type = 'upstream_error'
    code = 'UPSTREAM_ERROR'
    http_status = 502
