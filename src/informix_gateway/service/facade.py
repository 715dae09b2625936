import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Sequence

from informix_gateway.bridge.execution_bridge import ExecutionBridge
from informix_gateway.bridge.result_codec import ResultSet, Row, WriteOutcome
from informix_gateway.cache.query_cache import QueryCache, fingerprint
from informix_gateway.config.settings import BridgeMode
from informix_gateway.errors import GatewayError

logger = logging.getLogger(__name__)

HEALTH_CHECK_SQL = "SELECT FIRST 1 1 FROM systables"

QUERY_ERROR = "QUERY_ERROR"
EXECUTE_ERROR = "EXECUTE_ERROR"


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ServiceError(Exception):
    """Uniform error envelope handed to callers of the service.

    The underlying gateway error is kept as `__cause__`.
    """

    def __init__(self, message: str, details: str, code: str):
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code
        self.timestamp = _utc_iso()

    def to_dict(self) -> dict[str, str]:
        return {
            "message": self.message,
            "details": self.details,
            "code": self.code,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class QueryResult:
    data: ResultSet
    from_cache: bool


@dataclass(frozen=True)
class QueryOneResult:
    data: Row | None
    from_cache: bool


@dataclass(frozen=True)
class HealthReport:
    status: str
    cache_size: int
    timestamp: str
    error: str | None = None

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"


@dataclass(frozen=True)
class ServiceStats:
    initialized: bool
    cache_size: int
    cache_ttl: float
    bridge_mode: BridgeMode


class ServiceFacade:
    """Entry point for callers: cached reads, cache-busting writes, liveness and stats.

    Writes clear the whole cache, whatever table they touch. A read that was already running when a
    write cleared the cache can still store its (now stale) rows afterwards; that entry lives until
    its ttl runs out or the next write.
    """

    def __init__(self, bridge: ExecutionBridge, cache: QueryCache):
        self._bridge = bridge
        self._cache = cache
        self._initialized = False
        self._init_lock = threading.Lock()

    def initialize(self) -> None:
        """Check once that the Java runtime can be launched. Safe to call repeatedly.

        The database itself is not contacted here: connectivity shows up on the first statement, or
        through `health_check`.

        Raises:
            SpawnError: If the runtime can't be started.
        """
        with self._init_lock:
            if self._initialized:
                return
            self._bridge.verify_runtime()
            self._initialized = True
            logger.info("Gateway service initialized (bridge mode: %s)", self._bridge.mode)

    def query(
        self,
        sql: str,
        params: Sequence[Any] | None = None,
        *,
        use_cache: bool = True,
        cache_ttl: float | None = None,
    ) -> QueryResult:
        """Run a read statement, serving it from the cache when possible.

        Args:
            sql: The statement. Literal values must already be inlined.
            params: Accepted for forward compatibility and used in the cache key, but never sent to the
                database.
            use_cache: Whether to look up and store the result in the cache.
            cache_ttl: Overrides the cache ttl, in seconds, for this lookup.

        Returns:
            The rows, and whether they came from the cache.

        Raises:
            ServiceError: With code QUERY_ERROR if the bridge fails.
        """
        key = fingerprint(sql, params)

        if use_cache:
            cached = self._cache.get(key, ttl=cache_ttl)
            if cached is not None:
                logger.debug("Cache hit for %s", key[:12])
                return QueryResult(data=cached, from_cache=True)
            logger.debug("Cache miss for %s", key[:12])

        try:
            self.initialize()
            rows = self._bridge.run_query(sql)
        except GatewayError as e:
            raise ServiceError("Query failed", str(e), QUERY_ERROR) from e

        if use_cache:
            self._cache.put(key, rows)

        return QueryResult(data=rows, from_cache=False)

    def query_one(
        self,
        sql: str,
        params: Sequence[Any] | None = None,
        *,
        use_cache: bool = True,
        cache_ttl: float | None = None,
    ) -> QueryOneResult:
        result = self.query(sql, params, use_cache=use_cache, cache_ttl=cache_ttl)
        return QueryOneResult(data=result.data[0] if result.data else None, from_cache=result.from_cache)

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> WriteOutcome:
        """Run a write statement, then drop every cached result.

        Args:
            sql: The INSERT, UPDATE or DELETE statement, with literal values inlined.
            params: Ignored, like in `query`.

        Raises:
            ServiceError: With code EXECUTE_ERROR if the bridge fails.
        """
        try:
            self.initialize()
            outcome = self._bridge.run_statement(sql)
        except GatewayError as e:
            raise ServiceError("Execute failed", str(e), EXECUTE_ERROR) from e

        self.clear_cache()
        return outcome

    def health_check(self) -> HealthReport:
        try:
            self.initialize()
            self._bridge.run_query(HEALTH_CHECK_SQL)
        except GatewayError as e:
            logger.warning("Health check failed: %s", e)
            return HealthReport(status="unhealthy", cache_size=len(self._cache), timestamp=_utc_iso(), error=str(e))

        return HealthReport(status="healthy", cache_size=len(self._cache), timestamp=_utc_iso())

    def stats(self) -> ServiceStats:
        return ServiceStats(
            initialized=self._initialized,
            cache_size=len(self._cache),
            cache_ttl=self._cache.ttl,
            bridge_mode=self._bridge.mode,
        )

    def clear_cache(self, key: str | None = None) -> None:
        self._cache.clear(key)
        if key is None:
            logger.info("Query cache cleared")

    def shutdown(self) -> None:
        self._cache.clear()
        self._bridge.close()
        with self._init_lock:
            self._initialized = False
