"""
Store error taxonomy and driver-error classification.

Every action fails with exactly one `StoreError` subclass carrying the
category, the executor phase the failure happened in, and the backend's
diagnostic payload when there is one.
"""
import re
import sqlite3
from enum import Enum
from typing import Any

import psycopg
import sqlalchemy as sa

CONNECTION_LOST_PATTERNS = [
    # SSL/TLS errors
    r'\bssl\b',
    r'\btls\b',
    # Connection drops
    r'connection.*(closed|reset|refused|lost|terminated|broken)',
    r'server closed',
    r'eof detected',
    r'broken pipe',
    r'connection reset',
    # Timeouts
    r'timeout',
    r'timed out',
    # Network issues
    r'could not connect',
    r'no route to host',
    r'network.*(unreachable|error)',
    r'host.*(unreachable|down)',
    # Database unavailable
    r'database.*unavailable',
    r'too many connections',
    r'connection pool',
]

_CONNECTION_LOST_REGEX = re.compile('|'.join(CONNECTION_LOST_PATTERNS), re.IGNORECASE)

# Connection exception class plus server shutdown codes
CONNECTION_LOST_SQLSTATES = {'57P01', '57P02', '57P03'}


class Phase(str, Enum):
    """Executor states a request moves through."""
    BUILD = 'build'
    ACQUIRE = 'acquire'
    EXECUTE = 'execute'
    MAP = 'map'
    RELEASE = 'release'


class StoreError(Exception):
    """Base class for all store errors.
    """
    category = 'store'

    def __init__(self, message: str, *, phase: Phase | None = None,
                 diagnostics: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.phase = phase
        self.diagnostics = diagnostics or {}


class TranslationError(StoreError, ValueError):
    """Selector, modifier or identifier cannot be compiled to SQL.
    """
    category = 'translation'


class ConnectionFailure(StoreError):
    """Pool exhausted or backend unreachable.
    """
    category = 'connection'


class ExecutionError(StoreError):
    """Backend rejected the compiled statement.
    """
    category = 'execution'


class IntegrityViolationError(ExecutionError):
    """Database constraint violation error.
    """


class MappingError(StoreError):
    """Result row cannot be converted back to entity fields.
    """
    category = 'mapping'


class IdGenerationError(StoreError):
    """Registered id generation hook failed.
    """
    category = 'id_generation'


DbConnectionError = (
    psycopg.InterfaceError,
    sqlite3.InterfaceError,
    sa.exc.TimeoutError,
    ConnectionFailure,
    )

IntegrityError = (
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    IntegrityViolationError,
    )

OperationalError = (
    psycopg.OperationalError,
    sqlite3.OperationalError,
    )

ProgrammingError = (
    psycopg.ProgrammingError,
    sqlite3.ProgrammingError,
    )


def is_connection_lost(exc: BaseException) -> bool:
    """Check if an operational error reports a lost or unusable connection.

    Both drivers raise OperationalError for statement problems too
    ("no such table", statement timeouts, lock timeouts). A PostgreSQL error
    carrying a sqlstate is decided by it (class 08 or a shutdown code);
    otherwise the message decides.

    :param exc: The exception to check.
    :returns: True if the error reports a lost or unusable connection.
    """
    if not isinstance(exc, OperationalError):
        return False
    sqlstate = getattr(exc, 'sqlstate', None)
    if sqlstate:
        return sqlstate.startswith('08') or sqlstate in CONNECTION_LOST_SQLSTATES
    return bool(_CONNECTION_LOST_REGEX.search(str(exc)))


def _unwrap(exc: BaseException) -> BaseException:
    """Return the DBAPI exception wrapped by SQLAlchemy, if any."""
    if isinstance(exc, sa.exc.DBAPIError) and exc.orig is not None:
        return exc.orig
    return exc


def backend_diagnostics(exc: BaseException) -> dict[str, Any]:
    """Collect the backend's diagnostic payload from a driver exception.
    """
    exc = _unwrap(exc)
    diagnostics: dict[str, Any] = {
        'type': type(exc).__name__,
        'message': str(exc).strip(),
        }
    sqlstate = getattr(exc, 'sqlstate', None)
    if sqlstate:
        diagnostics['sqlstate'] = sqlstate
    diag = getattr(exc, 'diag', None)
    if diag is not None:
        for key in ('message_primary', 'message_detail', 'message_hint',
                    'schema_name', 'table_name', 'column_name', 'constraint_name'):
            value = getattr(diag, key, None)
            if value:
                diagnostics[key] = value
    errorname = getattr(exc, 'sqlite_errorname', None)
    if errorname:
        diagnostics['sqlite_errorname'] = errorname
    return diagnostics


def classify_error(exc: BaseException, phase: Phase) -> StoreError:
    """Convert any failure raised inside a request into its store category.

    Errors that are already store errors keep their category and only gain
    the phase if they had none.
    """
    if isinstance(exc, StoreError):
        if exc.phase is None:
            exc.phase = phase
        return exc

    diagnostics = backend_diagnostics(exc)
    message = diagnostics['message'] or type(exc).__name__
    driver_exc = _unwrap(exc)

    if phase == Phase.ACQUIRE or isinstance(driver_exc, DbConnectionError) \
            or is_connection_lost(driver_exc):
        return ConnectionFailure(message, phase=phase, diagnostics=diagnostics)
    if isinstance(driver_exc, IntegrityError):
        return IntegrityViolationError(message, phase=phase, diagnostics=diagnostics)
    if phase == Phase.MAP:
        return MappingError(message, phase=phase, diagnostics=diagnostics)
    return ExecutionError(message, phase=phase, diagnostics=diagnostics)


def raise_classified(exc: BaseException, phase: Phase):
    """Re-raise `exc` as its store category, chained to the original."""
    error = classify_error(exc, phase)
    if error is exc:
        raise exc
    raise error from exc
