"""Outcome type threaded through every core operation, plus the error taxonomy."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    TIMEOUT = "TIMEOUT"
    CONNECTION_FAILED = "CONNECTION_FAILED"
    UPSTREAM_REQUEST_FAILED = "UPSTREAM_REQUEST_FAILED"
    PARSE = "PARSE_ERROR"
    CONFIGURATION = "CONFIGURATION_ERROR"
    STORE = "STORE_ERROR"   # never leaves the core; swallowed by the orchestrator
    INTERNAL = "INTERNAL_ERROR"


# HTTP-equivalent status per kind, used for telemetry and by the API layer
_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.TIMEOUT: 408,
    ErrorKind.UPSTREAM_REQUEST_FAILED: 502,
    ErrorKind.PARSE: 502,
    ErrorKind.CONNECTION_FAILED: 503,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.STORE: 500,
    ErrorKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class Error:
    kind: ErrorKind
    message: str
    status_code: int | None = None   # upstream HTTP status, UPSTREAM_REQUEST_FAILED only

    @property
    def code(self) -> str:
        return self.kind.value

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


def status_for(error: Error | None) -> int:
    """HTTP-equivalent status for an outcome's error (200 when there is none)."""
    if error is None:
        return 200
    return _STATUS_BY_KIND.get(error.kind, 500)


# ── Error factories ──────────────────────────────────────────────────────


def validation_required(field: str) -> Error:
    return Error(ErrorKind.VALIDATION, f"{field} is required")


def validation_invalid(field: str, value: str) -> Error:
    return Error(ErrorKind.VALIDATION, f"Invalid value '{value}' for {field}")


def validation_format(field: str, detail: str = "") -> Error:
    message = f"{field} has invalid format"
    return Error(ErrorKind.VALIDATION, f"{message}: {detail}" if detail else message)


def not_found(resource: str, identifier: str) -> Error:
    return Error(ErrorKind.NOT_FOUND, f"{resource} with identifier '{identifier}' not found")


def timeout() -> Error:
    return Error(ErrorKind.TIMEOUT, "Request timed out")


def connection_failed(detail: str = "") -> Error:
    message = "Failed to establish connection"
    return Error(ErrorKind.CONNECTION_FAILED, f"{message}: {detail}" if detail else message)


def request_failed(status_code: int) -> Error:
    return Error(
        ErrorKind.UPSTREAM_REQUEST_FAILED,
        f"Request failed with status code {status_code}",
        status_code=status_code,
    )


def parse_error(what: str) -> Error:
    return Error(ErrorKind.PARSE, f"Failed to parse {what}")


def missing_api_key() -> Error:
    return Error(ErrorKind.CONFIGURATION, "API key is not configured")


def unexpected(exc: BaseException) -> Error:
    return Error(ErrorKind.INTERNAL, f"Unexpected {type(exc).__name__}: {exc}")


def store_failure(operation: str, exc: BaseException) -> Error:
    return Error(ErrorKind.STORE, f"{operation} failed: {type(exc).__name__}: {exc}")


# ── Outcome ──────────────────────────────────────────────────────────────


class OutcomeError(RuntimeError):
    """Raised by Outcome.unwrap() on a failure."""

    def __init__(self, error: Error):
        super().__init__(f"Cannot unwrap failed outcome: {error}")
        self.error = error


class Unit:
    """Success value for operations that return nothing."""

    _instance: Unit | None = None

    def __new__(cls) -> Unit:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "()"


UNIT = Unit()

_MISSING: Any = object()


class Outcome(Generic[T]):
    """Either a success value or an Error, never both."""

    __slots__ = ("_value", "_error")

    def __init__(self, value: T = _MISSING, error: Error | None = None):
        has_value = value is not _MISSING
        if has_value == (error is not None):
            raise ValueError("Outcome needs exactly one of value or error")
        self._value = value
        self._error = error

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: Error) -> Outcome[T]:
        return cls(error=error)

    @property
    def is_success(self) -> bool:
        return self._error is None

    @property
    def is_failure(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T | None:
        return None if self._error is not None else self._value

    @property
    def error(self) -> Error | None:
        return self._error

    def map(self, fn: Callable[[T], U]) -> Outcome[U]:
        if self._error is not None:
            return Outcome.failure(self._error)
        return Outcome.success(fn(self._value))

    def bind(self, fn: Callable[[T], Outcome[U]]) -> Outcome[U]:
        if self._error is not None:
            return Outcome.failure(self._error)
        return fn(self._value)

    def unwrap(self) -> T:
        if self._error is not None:
            raise OutcomeError(self._error)
        return self._value

    def unwrap_or(self, default: T) -> T:
        return default if self._error is not None else self._value

    def unwrap_or_else(self, fn: Callable[[Error], T]) -> T:
        return fn(self._error) if self._error is not None else self._value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Outcome):
            return NotImplemented
        return self._error == other._error and self.value == other.value

    def __repr__(self) -> str:
        if self._error is not None:
            return f"Outcome.failure({self._error!r})"
        return f"Outcome.success({self._value!r})"


def ok() -> Outcome[Unit]:
    return Outcome.success(UNIT)
