class GatewayError(Exception):
    """Base class for informix-gateway errors."""


class ConfigError(GatewayError):
    """Required connection settings are missing or invalid. Fatal at startup."""


class SpawnError(GatewayError):
    """The compiler or the Java runtime could not be launched at all."""


class ProcessOutputError(GatewayError):
    """Base class for failures reported by a child process. Carries the captured output."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class CompileError(ProcessOutputError):
    """The generated program did not compile. `output` holds the compiler diagnostics."""


class ExecutionError(ProcessOutputError):
    """The program exited with a non-zero status or reported a failure on stderr."""


class DecodeError(GatewayError):
    """The program's standard output could not be parsed."""


class ArtifactError(SpawnError):
    """The artifact directory or the generated source file could not be written."""
