import logging

from upstash_redis.asyncio import Redis

from yahtzee.config import Settings

logger = logging.getLogger(__name__)


def create_redis_client(settings: Settings) -> Redis:
    """Create the async Upstash Redis client used by the Redis store."""
    logger.info("Initializing Upstash Redis client")
    client = Redis(
        url=settings.UPSTASH_REDIS_REST_URL,
        token=settings.UPSTASH_REDIS_REST_TOKEN,
    )
    logger.debug("Redis client initialized with URL: %s", settings.UPSTASH_REDIS_REST_URL)
    return client


async def close_redis_client(client: Redis | None) -> None:
    """Close the Redis client connection."""
    if client is not None:
        logger.info("Closing Upstash Redis client")
        await client.close()
        logger.debug("Redis client closed")
