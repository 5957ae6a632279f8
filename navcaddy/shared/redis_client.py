"""
Async Redis connection helpers for NavCaddy services.

Configuration is read from environment variables:
- NAVCADDY_REDIS_HOST: Redis server host (default: localhost)
- NAVCADDY_REDIS_PORT: Redis server port (default: 6379)
- NAVCADDY_REDIS_DB: Redis database number (default: 0)
- NAVCADDY_REDIS_PASSWORD: Redis password (optional)
- NAVCADDY_REDIS_MAX_CONNECTIONS: Connection pool size (default: 20)
- NAVCADDY_REDIS_SOCKET_TIMEOUT: Socket timeout in seconds (default: 5.0)
- NAVCADDY_REDIS_SOCKET_CONNECT_TIMEOUT: Connect timeout in seconds (default: 5.0)
- NAVCADDY_REDIS_URL / REDIS_URL: Connection string (overrides individual settings)

Clients are created explicitly and handed to the services that need them;
callers own the client and close it on shutdown.

Usage:
    config = RedisConfig.from_env()
    client = await create_redis_client(config)
    ...
    await client.close()
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


@dataclass
class RedisConfig:
    """Redis connection settings"""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    url: Optional[str] = None
    max_connections: int = 20
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0

    def __post_init__(self):
        if self.max_connections <= 0:
            raise ValueError(f"max_connections must be positive, got {self.max_connections}")
        if self.socket_timeout <= 0 or self.socket_connect_timeout <= 0:
            raise ValueError("Redis socket timeouts must be positive")

    @staticmethod
    def from_env() -> "RedisConfig":
        """Load configuration from environment variables"""
        url = os.getenv("NAVCADDY_REDIS_URL") or os.getenv("REDIS_URL") or None
        if url:
            logger.info("Loading Redis config from REDIS_URL")

        def _int(name: str, default: int) -> int:
            try:
                return int(os.getenv(name, str(default)))
            except ValueError:
                logger.warning(f"Invalid {name}, using default {default}")
                return default

        def _float(name: str, default: float) -> float:
            try:
                return float(os.getenv(name, str(default)))
            except ValueError:
                logger.warning(f"Invalid {name}, using default {default}")
                return default

        return RedisConfig(
            host=os.getenv("NAVCADDY_REDIS_HOST", "localhost"),
            port=_int("NAVCADDY_REDIS_PORT", 6379),
            db=_int("NAVCADDY_REDIS_DB", 0),
            password=os.getenv("NAVCADDY_REDIS_PASSWORD") or None,
            url=url,
            max_connections=_int("NAVCADDY_REDIS_MAX_CONNECTIONS", 20),
            socket_timeout=_float("NAVCADDY_REDIS_SOCKET_TIMEOUT", 5.0),
            socket_connect_timeout=_float("NAVCADDY_REDIS_SOCKET_CONNECT_TIMEOUT", 5.0),
        )

    def get_redis_url(self) -> str:
        """Connection URL, preferring an explicit one"""
        if self.url:
            return self.url
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


async def create_redis_client(config: RedisConfig, ping_timeout: float = 2.0) -> redis.Redis:
    """
    Create a pooled async Redis client and verify it answers PING.

    Raises:
        RedisError: If the server cannot be reached
        asyncio.TimeoutError: If PING does not answer within ping_timeout
    """
    pool = redis.ConnectionPool.from_url(
        config.get_redis_url(),
        max_connections=config.max_connections,
        socket_timeout=config.socket_timeout,
        socket_connect_timeout=config.socket_connect_timeout,
        decode_responses=True,
    )
    client = redis.Redis(connection_pool=pool)
    try:
        await asyncio.wait_for(client.ping(), timeout=ping_timeout)
    except BaseException:
        await client.close()
        await pool.disconnect()
        raise
    logger.info(f" Redis connected: {config.host}:{config.port}/{config.db}")
    return client


async def ping_redis(client: redis.Redis, timeout: float = 1.0) -> bool:
    """Test Redis connectivity with a PING answered within `timeout` seconds."""
    try:
        return await asyncio.wait_for(client.ping(), timeout=timeout) is True
    except asyncio.TimeoutError:
        logger.error(f"Redis PING timed out after {timeout}s")
        return False
    except RedisError as e:
        logger.error(f"Redis PING failed: {e}")
        return False
