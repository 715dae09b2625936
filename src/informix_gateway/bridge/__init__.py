from informix_gateway.bridge.execution_bridge import ExecutionBridge
from informix_gateway.bridge.process_runner import ProcessResult, ProcessRunner
from informix_gateway.bridge.result_codec import CellValue, ResultSet, Row, WriteOutcome
from informix_gateway.bridge.source_generator import SourceGenerator, StatementKind

__all__ = [
    "ExecutionBridge",
    "ProcessRunner",
    "ProcessResult",
    "SourceGenerator",
    "StatementKind",
    "CellValue",
    "Row",
    "ResultSet",
    "WriteOutcome",
]
