import redis
import redis.asyncio as aioredis

from utils.config import settings

STREAM_KEY = settings.NOTIFICATION_STREAM

# async client for the consumer loop, sync client for publishers running in the threadpool
redis_client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
sync_redis_client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)


def _stream_fields(data: dict) -> dict:
    # xadd only takes flat str/int/float values
    return {k: str(v) for k, v in data.items() if v is not None}


def push_notification_event_sync(data: dict):
    sync_redis_client.xadd(STREAM_KEY, _stream_fields(data))
