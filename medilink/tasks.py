import logging
from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=10,   # 初始重试延迟（秒），指数退避会乘以 2^retry_count
    acks_late=True,           # 任务执行完才 ack，防止 worker 崩溃时任务丢失
    reject_on_worker_lost=True,
)
def delete_blob(self, public_id_or_url: str):
    """
    异步删除不再使用的图片（产品换图 / 删除产品后）。

    Best-effort：
      - 最多重试 3 次，指数退避：10s → 20s → 40s
      - 超出次数后只记 error 日志，不影响任何业务记录
    """
    from medilink.exceptions import UpstreamError
    from medilink.storage import get_blob_store

    logger.info("[Celery][delete_blob] 删除 %s (attempt %d/%d)",
                public_id_or_url, self.request.retries + 1, self.max_retries + 1)

    try:
        get_blob_store().delete(public_id_or_url)
    except UpstreamError as exc:
        logger.warning(
            "[Celery] 删除 %s 失败 (attempt %d): %s",
            public_id_or_url, self.request.retries + 1, exc.message
        )

        if self.request.retries < self.max_retries:
            # 指数退避：countdown = 10 * 2^retries → 10s, 20s, 40s
            countdown = self.default_retry_delay * (2 ** self.request.retries)
            raise self.retry(exc=exc, countdown=countdown)

        logger.error("[Celery] %s 已达最大重试次数，放弃删除", public_id_or_url)
        return False

    logger.info("[Celery] %s 已删除", public_id_or_url)
    return True
