"""
Supervised connection to the Redis instance backing session persistence.

The connector owns the single Redis client shared by every persistence
operation. It never lets a connection problem escape: a failed initial
connect disables persistence for the lifetime of the process, and a
connection lost later is retried in the background with capped
exponential backoff until the attempts run out.
"""

import asyncio
import logging
from typing import Any, Callable, Optional
from urllib.parse import urlsplit, urlunsplit

import redis.asyncio as redis
from redis.exceptions import RedisError

from config.settings import Settings
from errors.exceptions import ConnectionFailure
from resilience.retry import RetryConfig, RetryExhaustedException, retry_async

logger = logging.getLogger(__name__)

# First reconnect delay; later delays double up to the configured ceiling
RECONNECT_INITIAL_DELAY_SECONDS = 0.1
RECONNECT_EXPONENTIAL_BASE = 2.0

ClientFactory = Callable[..., Any]


def redact_url(url: str) -> str:
    """Mask the password component of a Redis URL for logging."""
    parts = urlsplit(url)
    if not parts.password:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


class RedisConnector:
    """
    Owns and supervises the connection to Redis.

    Lifecycle:
        connector = RedisConnector()
        await connector.initialize(settings)   # never raises
        ...
        await connector.shutdown()             # never raises

    The connector is ready only while the master enable flag is on, a
    client exists and the last ping or command succeeded. Once the
    reconnect attempts are exhausted it stays not-ready for good.

    Attributes:
        client: The shared redis.asyncio client, or None before a
            successful connect and after shutdown.
    """

    def __init__(self, client_factory: Optional[ClientFactory] = None):
        """
        Initialize the connector.

        Args:
            client_factory: Callable taking (url, **kwargs) and returning an
                async Redis client. Defaults to redis.asyncio.from_url.
        """
        self._client_factory = client_factory or redis.from_url
        self._client: Optional[Any] = None
        self._enabled = False
        self._connected = False
        self._gave_up = False
        self._closed = False
        self._supervisor: Optional[asyncio.Task] = None
        self._wake = asyncio.Event()
        self._retry_config = RetryConfig(retryable_exceptions=(RedisError, OSError))
        self._health_check_interval = 5.0
        self._shutdown_timeout = 5.0
        self._ping_timeout = 5.0

    @property
    def client(self) -> Optional[Any]:
        return self._client

    @property
    def gave_up(self) -> bool:
        """True once reconnection has been abandoned for this process."""
        return self._gave_up

    def is_ready(self) -> bool:
        """Return True only if persistence is enabled and the connection is live."""
        return (
            self._enabled
            and not self._closed
            and not self._gave_up
            and self._client is not None
            and self._connected
        )

    async def initialize(self, settings: Settings) -> None:
        """
        Connect to Redis according to settings.

        With the master flag off this is a no-op and the connector stays
        not-ready. A connection that cannot be established within the
        retry budget is logged and leaves persistence disabled.

        Args:
            settings: Application settings with the Redis connection parameters.
        """
        if self._client is not None or self._closed:
            logger.warning("Redis connector already initialized, ignoring")
            return

        self._enabled = settings.enable_session_persistence
        if not self._enabled:
            logger.info("Session persistence is disabled")
            return

        self._retry_config = RetryConfig(
            max_attempts=settings.redis_max_reconnect_attempts,
            initial_delay=RECONNECT_INITIAL_DELAY_SECONDS,
            exponential_base=RECONNECT_EXPONENTIAL_BASE,
            max_delay=settings.redis_reconnect_max_delay_seconds,
            retryable_exceptions=(RedisError, OSError),
        )
        self._health_check_interval = settings.redis_health_check_interval_seconds
        self._shutdown_timeout = settings.redis_shutdown_timeout_seconds
        self._ping_timeout = settings.redis_socket_timeout_seconds

        url = settings.redis_connection_url()
        try:
            await self._connect(url, settings)
        except ConnectionFailure as e:
            logger.error(
                "Failed to connect to Redis, continuing without session persistence",
                extra={"extra_data": e.to_dict()}
            )
            self._enabled = False
            return

        logger.info(
            "Session persistence service initialized with Redis",
            extra={"extra_data": {"redis_url": redact_url(url)}}
        )
        self._supervisor = asyncio.create_task(self._supervise())

    async def _connect(self, url: str, settings: Settings) -> None:
        """
        Create the client and verify it with PING.

        Raises:
            ConnectionFailure: If the client cannot be created or PING does not
                succeed within the retry budget.
        """
        client_kwargs: dict[str, Any] = {
            "decode_responses": True,
            "socket_timeout": settings.redis_socket_timeout_seconds,
            "socket_connect_timeout": settings.redis_socket_timeout_seconds,
        }
        if settings.redis_password:
            client_kwargs["password"] = settings.redis_password

        try:
            client = self._client_factory(url, **client_kwargs)
        except (RedisError, OSError, ValueError) as e:
            raise ConnectionFailure(
                "Could not create Redis client",
                details={"redis_url": redact_url(url), "last_error": str(e)}
            ) from e

        try:
            await retry_async(
                client.ping,
                config=self._retry_config,
                operation_name="redis.connect"
            )
        except RetryExhaustedException as e:
            await self._close_client(client)
            raise ConnectionFailure(
                f"Could not connect to Redis after {e.attempts} attempts",
                details={
                    "redis_url": redact_url(url),
                    "last_error": str(e.last_exception),
                }
            ) from e

        self._client = client
        self._connected = True
        logger.info("Redis client connected")

    def mark_disconnected(self, error: Optional[BaseException] = None) -> None:
        """
        Record that a command failed at the transport level.

        Flips the connector to not-ready and wakes the supervisor so it
        starts reconnecting without waiting for the next health ping.
        """
        if not self._connected:
            return
        self._connected = False
        logger.warning(
            "Redis connection lost",
            extra={"extra_data": {"error": str(error) if error else None}}
        )
        self._wake.set()

    async def _supervise(self) -> None:
        """Ping periodically and reconnect with backoff while disconnected."""
        while not self._closed:
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self._health_check_interval)
            except asyncio.TimeoutError:
                pass
            self._wake.clear()

            if self._closed or self._client is None:
                return

            if self._connected:
                try:
                    await self._client.ping()
                    continue
                except (RedisError, OSError) as e:
                    self.mark_disconnected(e)
                    self._wake.clear()

            logger.warning("Redis client reconnecting")
            try:
                await retry_async(
                    self._client.ping,
                    config=self._retry_config,
                    operation_name="redis.reconnect"
                )
            except RetryExhaustedException as e:
                logger.error(
                    "Too many Redis reconnection attempts, giving up",
                    extra={"extra_data": {
                        "attempts": e.attempts,
                        "last_error": str(e.last_exception),
                    }}
                )
                self._gave_up = True
                return

            self._connected = True
            logger.info("Redis client reconnected")

    async def health_check(self) -> bool:
        """
        Check connectivity of the Redis store.

        Returns:
            True if Redis answers PING, False otherwise. Never raises.
        """
        if self._client is None or self._closed:
            return False

        try:
            result = await asyncio.wait_for(
                self._client.ping(),
                timeout=self._ping_timeout
            )
            return result is True
        except Exception:
            return False

    async def shutdown(self) -> None:
        """
        Stop supervision and close the Redis connection.

        Closing is bounded by the configured shutdown timeout so that a hung
        store cannot block process exit. Errors are logged, not raised.
        """
        if self._closed:
            return
        self._closed = True
        self._connected = False

        if self._supervisor is not None:
            self._supervisor.cancel()
            try:
                await self._supervisor
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(
                    "Redis connection supervisor failed",
                    extra={"extra_data": {"error": str(e)}}
                )
            self._supervisor = None

        if self._client is not None:
            client, self._client = self._client, None
            if await self._close_client(client):
                logger.info("Redis client disconnected")

    async def _close_client(self, client: Any) -> bool:
        """Close a client within the shutdown timeout; return True on success."""
        try:
            await asyncio.wait_for(client.aclose(), timeout=self._shutdown_timeout)
            return True
        except Exception as e:
            logger.error(
                "Error disconnecting from Redis",
                extra={"extra_data": {"error": str(e), "error_type": type(e).__name__}}
            )
            return False
