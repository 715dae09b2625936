import pytest

from informix_gateway.bridge.execution_bridge import ExecutionBridge
from informix_gateway.bridge.process_runner import ProcessResult
from informix_gateway.bridge.result_codec import WriteOutcome
from informix_gateway.bridge.source_generator import (
    ADAPTER_CLASS_NAME,
    ADAPTER_PASSWORD_ENV,
    ADAPTER_URL_ENV,
    ADAPTER_USER_ENV,
    STATEMENT_CLASS_NAME,
)
from informix_gateway.errors import ArtifactError, CompileError, DecodeError, ExecutionError
from tests.utils.fakes import FakeProcessRunner


def _ok(stdout: str) -> ProcessResult:
    return ProcessResult(exit_code=0, stdout=stdout, stderr="")


def test_run_query__decodes_rows(bridge, fake_runner):
    fake_runner.run_results.append(_ok('[{"customer_num":"101","company":null}]\n'))

    rows = bridge.run_query("SELECT customer_num, company FROM customer")

    assert rows == [{"customer_num": "101", "company": None}]
    assert fake_runner.runs[0]["class_name"] == STATEMENT_CLASS_NAME
    assert fake_runner.runs[0]["class_dir_existed"]


def test_run_query__compiles_a_program_with_the_statement(bridge, fake_runner):
    bridge.run_query("SELECT * FROM customer WHERE lname = 'O''Brien'")

    source_file, source = fake_runner.compiled[0]
    assert source_file.name == "GatewayStatement.java"
    assert "WHERE lname = 'O''Brien'" in source
    assert "executeQuery" in source


def test_run_query__unreadable_output_is_no_rows(bridge, fake_runner):
    fake_runner.run_results.append(_ok("this is not a record array"))

    assert bridge.run_query("SELECT 1 FROM systables") == []


def test_run_statement__decodes_outcome(bridge, fake_runner):
    fake_runner.run_results.append(_ok('{"rowsAffected":2,"success":true}'))

    outcome = bridge.run_statement("UPDATE customer SET fname = 'Ann' WHERE customer_num = 101")

    assert outcome == WriteOutcome(rows_affected=2, success=True)
    assert "executeUpdate" in fake_runner.compiled[0][1]


def test_run_statement__unreadable_output_raises(bridge, fake_runner):
    fake_runner.run_results.append(_ok(""))

    with pytest.raises(DecodeError):
        bridge.run_statement("DELETE FROM customer WHERE customer_num = 101")


def test_compile_failure_raises_with_diagnostics_and_skips_run(bridge, fake_runner):
    fake_runner.compile_results.append(
        ProcessResult(exit_code=1, stdout="", stderr="GatewayStatement.java:14: error: ';' expected")
    )

    with pytest.raises(CompileError) as exc_info:
        bridge.run_query("SELECT 1 FROM systables")

    assert "';' expected" in exc_info.value.output
    assert fake_runner.runs == []


def test_non_zero_exit_raises_execution_error(bridge, fake_runner):
    fake_runner.run_results.append(ProcessResult(exit_code=1, stdout="", stderr="ERROR: Table (nope) not found."))

    with pytest.raises(ExecutionError) as exc_info:
        bridge.run_query("SELECT * FROM nope")

    assert "Table (nope) not found." in str(exc_info.value)
    assert exc_info.value.output == "ERROR: Table (nope) not found."


def test_sentinel_line_raises_even_with_zero_exit(bridge, fake_runner):
    fake_runner.run_results.append(
        ProcessResult(exit_code=0, stdout="[]", stderr="some warning\nERROR: Connection refused\n")
    )

    with pytest.raises(ExecutionError, match="Connection refused"):
        bridge.run_query("SELECT 1 FROM systables")


def test_stderr_without_sentinel_is_not_a_failure(bridge, fake_runner):
    fake_runner.run_results.append(ProcessResult(exit_code=0, stdout='[{"a":"1"}]', stderr="Picked up JAVA_TOOL_OPTIONS"))

    assert bridge.run_query("SELECT a FROM t") == [{"a": "1"}]


def test_crash_without_output_raises_execution_error(bridge, fake_runner):
    fake_runner.run_results.append(ProcessResult(exit_code=137, stdout="", stderr=""))

    with pytest.raises(ExecutionError, match="query failed"):
        bridge.run_query("SELECT 1 FROM systables")


@pytest.mark.parametrize(
    "compile_result, run_result",
    [
        (ProcessResult(0, "", ""), ProcessResult(0, "[]", "")),
        (ProcessResult(1, "", "boom"), None),
        (ProcessResult(0, "", ""), ProcessResult(1, "", "ERROR: boom")),
        (ProcessResult(0, "", ""), ProcessResult(0, "garbage", "")),
    ],
)
def test_artifacts_are_removed_on_every_exit_path(bridge, fake_runner, compile_result, run_result):
    fake_runner.compile_results.append(compile_result)
    if run_result is not None:
        fake_runner.run_results.append(run_result)

    try:
        bridge.run_query("SELECT 1 FROM systables")
    except (CompileError, ExecutionError):
        pass

    assert list(fake_runner._work_dir.iterdir()) == []


def test_artifacts_are_removed_after_write_decode_error(bridge, fake_runner):
    fake_runner.run_results.append(_ok("garbage"))

    with pytest.raises(DecodeError):
        bridge.run_statement("DELETE FROM t WHERE id = 1")

    assert list(fake_runner._work_dir.iterdir()) == []


def test_each_call_gets_its_own_artifact_directory(bridge, fake_runner):
    bridge.run_query("SELECT 1 FROM systables")
    bridge.run_query("SELECT 1 FROM systables")

    first_dir, second_dir = (source_file.parent for source_file, _ in fake_runner.compiled)
    assert first_dir != second_dir
    assert first_dir.name.startswith("igw-")


def test_quotes_in_statement_compile(bridge, fake_runner):
    fake_runner.run_results.append(_ok('[{"lname":"O\'Brien"}]'))

    rows = bridge.run_query("SELECT lname FROM customer WHERE lname = 'O''Brien' AND note = \"say \\\"hi\\\"\"")

    assert rows == [{"lname": "O'Brien"}]
    assert len(fake_runner.compiled) == 1


def test_adapter_mode__compiles_once_and_passes_statement_on_stdin(connection, fake_runner):
    bridge = ExecutionBridge(connection=connection, runner=fake_runner, mode="adapter")
    fake_runner.run_results.extend([_ok('[{"n":"1"}]'), _ok('{"rowsAffected":1,"success":true}')])

    assert bridge.run_query("SELECT 1 AS n FROM systables") == [{"n": "1"}]
    assert bridge.run_statement("DELETE FROM t WHERE id = 1") == WriteOutcome(rows_affected=1, success=True)

    assert len(fake_runner.compiled) == 1
    assert fake_runner.compiled[0][0].name == "GatewayAdapter.java"

    query_run, update_run = fake_runner.runs
    assert query_run["class_name"] == ADAPTER_CLASS_NAME
    assert query_run["args"] == ("query",)
    assert query_run["stdin"] == "SELECT 1 AS n FROM systables"
    assert update_run["args"] == ("update",)
    assert query_run["extra_env"] == {
        ADAPTER_URL_ENV: connection.jdbc_url,
        ADAPTER_USER_ENV: connection.user,
        ADAPTER_PASSWORD_ENV: connection.password,
    }
    # the statement text is never written into the adapter source
    assert "DELETE FROM t" not in fake_runner.compiled[0][1]


def test_adapter_mode__close_removes_adapter_and_next_call_recompiles(connection, fake_runner):
    bridge = ExecutionBridge(connection=connection, runner=fake_runner, mode="adapter")

    bridge.run_query("SELECT 1 FROM systables")
    adapter_dir = fake_runner.runs[0]["class_dir"]
    assert adapter_dir.is_dir()

    bridge.close()
    assert not adapter_dir.exists()
    bridge.close()

    bridge.run_query("SELECT 1 FROM systables")
    assert len(fake_runner.compiled) == 2


def test_adapter_mode__compile_failure_leaves_nothing_behind(connection, fake_runner):
    bridge = ExecutionBridge(connection=connection, runner=fake_runner, mode="adapter")
    fake_runner.compile_results.append(ProcessResult(exit_code=1, stdout="", stderr="javac: bad"))

    with pytest.raises(CompileError):
        bridge.run_query("SELECT 1 FROM systables")

    assert list(fake_runner._work_dir.iterdir()) == []


def test_verify_runtime_delegates_to_runner(bridge, fake_runner):
    bridge.verify_runtime()

    assert fake_runner.runtime_checks == 1


@pytest.mark.parametrize("mode", ["compile", "adapter"])
def test_unusable_work_dir_raises_artifact_error(connection, tmp_path, mode):
    not_a_directory = tmp_path.joinpath("artifacts")
    not_a_directory.write_text("")
    runner = FakeProcessRunner(not_a_directory)
    bridge = ExecutionBridge(connection=connection, runner=runner, mode=mode)

    with pytest.raises(ArtifactError):
        bridge.run_query("SELECT * FROM customer")

    assert runner.compiled == []
    assert runner.runs == []


def test_statement_that_cannot_be_written_raises_artifact_error(bridge, fake_runner, tmp_path):
    with pytest.raises(ArtifactError):
        bridge.run_query("SELECT '\ud800' FROM systables")

    assert fake_runner.compiled == []
    assert list(tmp_path.joinpath("artifacts").iterdir()) == []
