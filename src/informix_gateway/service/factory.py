import time

from informix_gateway.bridge.execution_bridge import ExecutionBridge
from informix_gateway.bridge.process_runner import ProcessRunner
from informix_gateway.bridge.source_generator import SourceGenerator
from informix_gateway.cache.query_cache import Clock, QueryCache
from informix_gateway.config.settings import GatewaySettings
from informix_gateway.service.facade import ServiceFacade


def create_process_runner(settings: GatewaySettings) -> ProcessRunner:
    return ProcessRunner(
        class_path=[settings.jdbc_jar],
        java_bin=settings.java_bin,
        javac_bin=settings.javac_bin,
        work_dir=settings.work_dir,
    )


def create_service(settings: GatewaySettings, *, clock: Clock | None = None) -> ServiceFacade:
    bridge = ExecutionBridge(
        connection=settings.connection,
        runner=create_process_runner(settings),
        generator=SourceGenerator(),
        mode=settings.bridge_mode,
    )
    cache = QueryCache(ttl=settings.cache_ttl, clock=clock or time.monotonic)

    return ServiceFacade(bridge=bridge, cache=cache)
