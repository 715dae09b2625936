import logging
from dataclasses import dataclass
from enum import Enum

import sqlparse
from sqlparse import tokens as T

logger = logging.getLogger(__name__)

_READ_VERBS = {"SELECT", "WITH"}
_WRITE_VERBS = {"INSERT", "UPDATE", "DELETE"}

_IGNORED = (T.Whitespace, T.Newline, T.Comment.Single, T.Comment.Multiline)


class StatementKindDecision(Enum):
    READ = "read"
    WRITE = "write"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class StatementDecision:
    kind: StatementKindDecision
    verb: str | None = None
    reason: str | None = None


class StatementNotAllowedError(ValueError):
    pass


def classify_statement(sql: str) -> StatementDecision:
    """Coarse verb-based classification of a single statement.

    This is an allow-list on the leading verb, not a parser: it decides which entry point may run a
    statement, and has nothing to do with how the statement is embedded in the generated program.
    """
    if not sql or not sql.strip():
        return StatementDecision(StatementKindDecision.UNKNOWN, reason="Empty SQL")

    statements = [
        statement
        for statement in sqlparse.parse(sql)
        if any(token.ttype not in _IGNORED and not token.is_whitespace for token in statement.flatten())
    ]
    if not statements:
        return StatementDecision(StatementKindDecision.UNKNOWN, reason="No SQL statement found")
    if len(statements) != 1:
        return StatementDecision(StatementKindDecision.UNKNOWN, reason="Multiple SQL statements are not allowed")

    first_token = statements[0].token_first(skip_ws=True, skip_cm=True)
    if first_token is None or first_token.ttype is T.Punctuation:
        return StatementDecision(StatementKindDecision.UNKNOWN, reason="No SQL keywords found")

    verb = first_token.normalized.upper()
    if verb in _WRITE_VERBS:
        return StatementDecision(StatementKindDecision.WRITE, verb=verb)

    if verb in _READ_VERBS:
        for token in statements[0].flatten():
            if token.ttype in T.Keyword and token.normalized.upper() in _WRITE_VERBS | {"INTO"}:
                return StatementDecision(
                    StatementKindDecision.WRITE, verb=verb, reason=f"{token.normalized.upper()} inside a {verb}"
                )
        return StatementDecision(StatementKindDecision.READ, verb=verb)

    return StatementDecision(StatementKindDecision.UNKNOWN, verb=verb, reason=f"Statement verb {verb} is not allowed")


def ensure_read_statement(sql: str) -> StatementDecision:
    decision = classify_statement(sql)
    if decision.kind != StatementKindDecision.READ:
        logger.warning("Refusing non-read statement: %s", decision.reason)
        raise StatementNotAllowedError(
            f"Only SELECT queries are allowed here{f' ({decision.reason})' if decision.reason else ''}"
        )
    return decision


def ensure_write_statement(sql: str) -> StatementDecision:
    decision = classify_statement(sql)
    if decision.kind != StatementKindDecision.WRITE or decision.verb not in _WRITE_VERBS:
        logger.warning("Refusing non-write statement: %s", decision.reason or decision.verb)
        raise StatementNotAllowedError("Only INSERT, UPDATE and DELETE statements are allowed here")
    return decision
