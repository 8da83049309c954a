import logging
import redis as _redis

logger = logging.getLogger(__name__)

# Initialized lazily in create_app. None means in-process fallbacks are used.
redis_client: _redis.Redis = None  # type: ignore


def init_redis(app):
    global redis_client
    redis_client = None
    redis_url = app.config.get("REDIS_URL", "")
    if not redis_url:
        logger.warning("REDIS_URL not set, drafts kept in process memory (dev mode)")
        return

    try:
        client = _redis.from_url(redis_url, decode_responses=True)
        client.ping()
        redis_client = client
    except Exception as e:
        logger.warning("Redis connection failed (%s), drafts kept in process memory", e)
