import logging
import os
import shutil
import subprocess
import tempfile
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping, Sequence

from informix_gateway.bridge.source_generator import GeneratedProgram
from informix_gateway.errors import ArtifactError, SpawnError

logger = logging.getLogger(__name__)

ARTIFACT_DIR_PREFIX = "igw-"


@dataclass(frozen=True)
class ProcessResult:
    exit_code: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        """Whatever the process had to say, preferring stderr."""
        return self.stderr.strip() or self.stdout.strip()


@dataclass(frozen=True)
class ArtifactWorkspace:
    token: str
    directory: Path

    def write_program(self, program: GeneratedProgram) -> Path:
        source_file = self.directory.joinpath(program.file_name)
        try:
            source_file.write_text(program.source, encoding="utf-8")
        except (OSError, UnicodeEncodeError) as e:
            raise ArtifactError(f"Failed to write {source_file}: {e}") from e
        return source_file


class ProcessRunner:
    """Compiles and runs Java programs as child processes.

    Each call is a single blocking attempt: there is no timeout and no retry. A child that outlives
    its caller keeps running until the JVM exits on its own.
    """

    def __init__(
        self,
        *,
        class_path: Sequence[Path],
        java_bin: str = "java",
        javac_bin: str = "javac",
        work_dir: Path | None = None,
    ):
        self._class_path = list(class_path)
        self._java_bin = java_bin
        self._javac_bin = javac_bin
        self._work_dir = work_dir

    def check_runtime(self) -> None:
        result = self._spawn([self._java_bin, "-version"])
        if result.exit_code != 0:
            raise SpawnError(f"Java runtime at {self._java_bin} is not usable: {result.output}")

    def compile(self, source_file: Path) -> ProcessResult:
        cmd = [
            self._javac_bin,
            "-encoding",
            "UTF-8",
            "-cp",
            self._join_class_path(),
            "-d",
            str(source_file.parent),
            str(source_file),
        ]
        return self._spawn(cmd, cwd=source_file.parent)

    def run(
        self,
        class_dir: Path,
        class_name: str,
        *args: str,
        stdin: str | None = None,
        extra_env: Mapping[str, str] | None = None,
    ) -> ProcessResult:
        cmd = [
            self._java_bin,
            "-Dfile.encoding=UTF-8",
            "-cp",
            self._join_class_path(class_dir),
            class_name,
            *args,
        ]
        env = None
        if extra_env:
            env = os.environ.copy()
            env.update(extra_env)
        return self._spawn(cmd, stdin=stdin, env=env)

    @contextmanager
    def ephemeral_workspace(self) -> Iterator[ArtifactWorkspace]:
        """Allocate a call-unique artifact directory and remove it on every exit path."""
        workspace = self.create_workspace()
        try:
            yield workspace
        finally:
            self.remove_workspace(workspace)

    def create_workspace(self) -> ArtifactWorkspace:
        token = uuid.uuid4().hex
        base_dir = self._work_dir or Path(tempfile.gettempdir())
        directory = base_dir.joinpath(f"{ARTIFACT_DIR_PREFIX}{token}")
        try:
            directory.mkdir(parents=True, exist_ok=False)
        except OSError as e:
            raise ArtifactError(f"Failed to create artifact directory {directory}: {e}") from e
        return ArtifactWorkspace(token=token, directory=directory)

    def remove_workspace(self, workspace: ArtifactWorkspace) -> None:
        shutil.rmtree(workspace.directory, ignore_errors=True)

    def _join_class_path(self, *extra: Path) -> str:
        return os.pathsep.join(str(entry) for entry in [*self._class_path, *extra])

    def _spawn(
        self,
        cmd: list[str],
        *,
        cwd: Path | None = None,
        stdin: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessResult:
        started = time.perf_counter()
        try:
            completed = subprocess.run(
                cmd,
                input=stdin,
                capture_output=True,
                cwd=str(cwd) if cwd else None,
                env=env,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except OSError as e:
            raise SpawnError(f"Failed to launch {cmd[0]}: {e}") from e

        logger.debug(
            "%s exited with %s after %.0f ms",
            Path(cmd[0]).name,
            completed.returncode,
            (time.perf_counter() - started) * 1000,
        )
        return ProcessResult(exit_code=completed.returncode, stdout=completed.stdout or "", stderr=completed.stderr or "")
