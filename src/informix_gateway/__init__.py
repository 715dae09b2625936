from informix_gateway.bridge import (
    CellValue,
    ExecutionBridge,
    ProcessResult,
    ProcessRunner,
    ResultSet,
    Row,
    SourceGenerator,
    StatementKind,
    WriteOutcome,
)
from informix_gateway.cache.query_cache import QueryCache, fingerprint
from informix_gateway.config.settings import ConnectionDescriptor, GatewaySettings, PoolHints, load_settings
from informix_gateway.errors import (
    ArtifactError,
    CompileError,
    ConfigError,
    DecodeError,
    ExecutionError,
    GatewayError,
    SpawnError,
)
from informix_gateway.service.facade import (
    HealthReport,
    QueryOneResult,
    QueryResult,
    ServiceError,
    ServiceFacade,
    ServiceStats,
)
from informix_gateway.service.factory import create_service

__all__ = [
    "ServiceFacade",
    "ServiceError",
    "QueryResult",
    "QueryOneResult",
    "HealthReport",
    "ServiceStats",
    "create_service",
    "ExecutionBridge",
    "ProcessRunner",
    "ProcessResult",
    "SourceGenerator",
    "StatementKind",
    "QueryCache",
    "fingerprint",
    "CellValue",
    "Row",
    "ResultSet",
    "WriteOutcome",
    "ConnectionDescriptor",
    "GatewaySettings",
    "PoolHints",
    "load_settings",
    "GatewayError",
    "ConfigError",
    "SpawnError",
    "ArtifactError",
    "CompileError",
    "ExecutionError",
    "DecodeError",
]
