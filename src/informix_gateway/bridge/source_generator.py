from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from jinja2 import FileSystemLoader, StrictUndefined
from jinja2.sandbox import SandboxedEnvironment

from informix_gateway.config.settings import ConnectionDescriptor

FAILURE_SENTINEL = "ERROR:"
DRIVER_CLASS = "com.informix.jdbc.IfxDriver"

STATEMENT_CLASS_NAME = "GatewayStatement"
ADAPTER_CLASS_NAME = "GatewayAdapter"

# environment variables the adapter program reads its session from
ADAPTER_URL_ENV = "IGW_JDBC_URL"
ADAPTER_USER_ENV = "IGW_USER"
ADAPTER_PASSWORD_ENV = "IGW_PASSWORD"

_TEMPLATES_DIR = Path(__file__).parent.joinpath("templates")

_JAVA_CONTROL_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


class StatementKind(Enum):
    QUERY = "query"
    UPDATE = "update"


@dataclass(frozen=True)
class GeneratedProgram:
    class_name: str
    source: str

    @property
    def file_name(self) -> str:
        return f"{self.class_name}.java"


def escape_java_string(value: str) -> str:
    """Escape `value` so it can sit between double quotes in a Java source file.

    This keeps the generated program compilable whatever the statement contains. It is not a
    defence against SQL injection: the statement reaches the database exactly as it was given.
    """
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return "".join(_escape_java_control(char) for char in escaped)


def _escape_java_control(char: str) -> str:
    if char in _JAVA_CONTROL_ESCAPES:
        return _JAVA_CONTROL_ESCAPES[char]
    if ord(char) < 0x20:
        return f"\\{ord(char):03o}"
    return char


class SourceGenerator:
    def __init__(self) -> None:
        self._env = SandboxedEnvironment(
            loader=FileSystemLoader(_TEMPLATES_DIR),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )
        self._env.filters["java_string"] = escape_java_string

    def render_statement_program(
        self, connection: ConnectionDescriptor, sql: str, kind: StatementKind
    ) -> GeneratedProgram:
        """Render a single-use program that runs `sql` once against `connection`."""
        source = self._env.get_template("statement_program.java.j2").render(
            class_name=STATEMENT_CLASS_NAME,
            sentinel=FAILURE_SENTINEL,
            driver_class=DRIVER_CLASS,
            connection=connection,
            sql=sql,
            kind=kind.value,
        )
        return GeneratedProgram(class_name=STATEMENT_CLASS_NAME, source=source)

    def render_adapter_program(self) -> GeneratedProgram:
        """Render the reusable adapter, which reads its statement from stdin and its session from the environment."""
        source = self._env.get_template("adapter_program.java.j2").render(
            class_name=ADAPTER_CLASS_NAME,
            sentinel=FAILURE_SENTINEL,
            driver_class=DRIVER_CLASS,
            query_mode=StatementKind.QUERY.value,
            update_mode=StatementKind.UPDATE.value,
            url_env=ADAPTER_URL_ENV,
            user_env=ADAPTER_USER_ENV,
            password_env=ADAPTER_PASSWORD_ENV,
        )
        return GeneratedProgram(class_name=ADAPTER_CLASS_NAME, source=source)
