"""
Treasury errors.

Every failure aborts the enclosing operation; the engine restores its state
before the exception reaches the caller. Each class carries a stable integer
code so the API layer and tests can classify failures without matching
strings.
"""
from enum import IntEnum
from typing import Any, Mapping


class ErrorCode(IntEnum):
    TREASURY_GENERIC = 3000
    INVALID_AMOUNT = 3001
    INVALID_VAULT_REFERENCE = 3002
    NO_ALLOCATION = 3003
    INSUFFICIENT_BALANCE = 3004
    DIVISION_BY_ZERO = 3005
    EXTERNAL_CALL_FAILURE = 3006
    UNAUTHORIZED = 3007


class TreasuryError(Exception):
    code: ErrorCode = ErrorCode.TREASURY_GENERIC

    def __init__(self, message: str, *, context: Mapping[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = dict(context or {})

    def to_dict(self) -> dict:
        return {
            "code": int(self.code),
            "error": type(self).__name__,
            "detail": self.message,
            "context": self.context,
        }

    def __str__(self) -> str:
        if not self.context:
            return self.message
        fields = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{self.message} ({fields})"


class InvalidAmount(TreasuryError):
    code = ErrorCode.INVALID_AMOUNT


class InvalidVaultReference(TreasuryError):
    code = ErrorCode.INVALID_VAULT_REFERENCE


class NoAllocation(TreasuryError):
    code = ErrorCode.NO_ALLOCATION


class InsufficientBalance(TreasuryError):
    code = ErrorCode.INSUFFICIENT_BALANCE


class DivisionByZero(TreasuryError):
    code = ErrorCode.DIVISION_BY_ZERO


class ExternalCallFailure(TreasuryError):
    """Raised by collaborators (vaults, routers, ledgers) when a call reverts."""
    code = ErrorCode.EXTERNAL_CALL_FAILURE


class Unauthorized(TreasuryError):
    code = ErrorCode.UNAUTHORIZED


__all__ = [
    "ErrorCode",
    "TreasuryError",
    "InvalidAmount",
    "InvalidVaultReference",
    "NoAllocation",
    "InsufficientBalance",
    "DivisionByZero",
    "ExternalCallFailure",
    "Unauthorized",
]
