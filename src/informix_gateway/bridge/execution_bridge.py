import logging
import threading
from pathlib import Path

from informix_gateway.bridge.process_runner import ArtifactWorkspace, ProcessResult, ProcessRunner
from informix_gateway.bridge.result_codec import ResultSet, WriteOutcome, decode_result_set, decode_write_outcome
from informix_gateway.bridge.source_generator import (
    ADAPTER_CLASS_NAME,
    ADAPTER_PASSWORD_ENV,
    ADAPTER_URL_ENV,
    ADAPTER_USER_ENV,
    FAILURE_SENTINEL,
    SourceGenerator,
    StatementKind,
)
from informix_gateway.config.settings import BridgeMode, ConnectionDescriptor
from informix_gateway.errors import CompileError, ExecutionError

logger = logging.getLogger(__name__)


class ExecutionBridge:
    """Runs one SQL statement per call through a freshly spawned JVM.

    In "compile" mode every call renders a throwaway program with the statement baked in, compiles it,
    runs it and deletes it. In "adapter" mode a single adapter program is compiled on first use and
    every call runs it with the statement on stdin.

    Either way the driver session lives exactly as long as the child process, so nothing is pooled and
    no transaction spans two calls.
    """

    def __init__(
        self,
        connection: ConnectionDescriptor,
        runner: ProcessRunner,
        generator: SourceGenerator | None = None,
        mode: BridgeMode = "compile",
    ):
        self._connection = connection
        self._runner = runner
        self._generator = generator or SourceGenerator()
        self._mode = mode

        self._adapter_lock = threading.Lock()
        self._adapter: ArtifactWorkspace | None = None

    @property
    def mode(self) -> BridgeMode:
        return self._mode

    def verify_runtime(self) -> None:
        self._runner.check_runtime()

    def run_query(self, sql: str) -> ResultSet:
        """Run a statement that returns rows.

        Unreadable output decodes to an empty result set rather than an error.

        Raises:
            SpawnError: If javac or java can't be launched.
            CompileError: If the generated program doesn't compile.
            ExecutionError: If the program fails.
        """
        return decode_result_set(self._execute(sql, StatementKind.QUERY))

    def run_statement(self, sql: str) -> WriteOutcome:
        """Run an INSERT, UPDATE or DELETE.

        Raises:
            SpawnError: If javac or java can't be launched.
            CompileError: If the generated program doesn't compile.
            ExecutionError: If the program fails.
            DecodeError: If the reported outcome can't be parsed.
        """
        return decode_write_outcome(self._execute(sql, StatementKind.UPDATE))

    def close(self) -> None:
        with self._adapter_lock:
            if self._adapter is not None:
                self._runner.remove_workspace(self._adapter)
                self._adapter = None

    def _execute(self, sql: str, kind: StatementKind) -> str:
        logger.debug("Running %s statement in %s mode: %s", kind.value, self._mode, sql)

        if self._mode == "adapter":
            result = self._run_adapter(sql, kind)
        else:
            result = self._run_compiled(sql, kind)

        if result.exit_code != 0 or _sentinel_lines(result.stderr):
            message = "; ".join(_sentinel_lines(result.stderr)) or result.output or f"{kind.value} failed"
            logger.warning("Statement failed with exit code %s: %s", result.exit_code, message)
            raise ExecutionError(f"Statement failed: {message}", output=result.output)

        return result.stdout

    def _run_compiled(self, sql: str, kind: StatementKind) -> ProcessResult:
        program = self._generator.render_statement_program(self._connection, sql, kind)

        with self._runner.ephemeral_workspace() as workspace:
            self._compile(workspace.write_program(program))
            return self._runner.run(workspace.directory, program.class_name)

    def _run_adapter(self, sql: str, kind: StatementKind) -> ProcessResult:
        adapter = self._ensure_adapter()
        return self._runner.run(
            adapter.directory,
            ADAPTER_CLASS_NAME,
            kind.value,
            stdin=sql,
            extra_env={
                ADAPTER_URL_ENV: self._connection.jdbc_url,
                ADAPTER_USER_ENV: self._connection.user,
                ADAPTER_PASSWORD_ENV: self._connection.password,
            },
        )

    def _ensure_adapter(self) -> ArtifactWorkspace:
        with self._adapter_lock:
            if self._adapter is None:
                program = self._generator.render_adapter_program()
                workspace = self._runner.create_workspace()
                try:
                    self._compile(workspace.write_program(program))
                except Exception:
                    self._runner.remove_workspace(workspace)
                    raise
                logger.info("Compiled statement adapter in %s", workspace.directory)
                self._adapter = workspace
            return self._adapter

    def _compile(self, source_file: Path) -> None:
        result = self._runner.compile(source_file)
        if result.exit_code != 0:
            logger.warning("Compilation of %s failed: %s", source_file.name, result.output)
            raise CompileError(f"Compilation failed: {result.output}", output=result.output)


def _sentinel_lines(stderr: str) -> list[str]:
    return [
        line.strip()[len(FAILURE_SENTINEL) :].strip()
        for line in stderr.splitlines()
        if line.strip().startswith(FAILURE_SENTINEL)
    ]
