import structlog
from taskiq import InMemoryBroker, TaskiqEvents, TaskiqState
from taskiq_redis import ListQueueBroker, RedisAsyncResultBackend

from model_viewer.core.config import ProductionSettings, settings

logger = structlog.get_logger()


def get_broker():
    """Translation jobs go through Redis in production and stay in-process elsewhere."""
    if isinstance(settings, ProductionSettings):
        return ListQueueBroker(
            url=settings.REDIS_URL,
            queue_name=settings.TASK_QUEUE,
        ).with_result_backend(
            RedisAsyncResultBackend(redis_url=settings.REDIS_URL, result_ex_time=settings.JOB_RESULT_TTL)
        )

    return InMemoryBroker()


broker = get_broker()


@broker.on_event(TaskiqEvents.WORKER_STARTUP)
async def startup(state: TaskiqState):
    logger.info("translation_worker_starting", env=settings.ENV, region=settings.APS_REGION)


@broker.on_event(TaskiqEvents.WORKER_SHUTDOWN)
async def shutdown(state: TaskiqState):
    logger.info("translation_worker_stopping")
