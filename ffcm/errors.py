"""Error taxonomy for contract operations.

Each error carries a stable machine-readable code and the HTTP status the
request handlers map it to.
"""

from __future__ import annotations

from typing import Any, Optional


class ContractManagerError(Exception):
    """Base class for errors surfaced to callers."""

    status_code = 500
    default_code = 'INTERNAL_ERROR'

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details

    def __str__(self) -> str:
        return f'{self.code}: {self.message}'

    def to_payload(self) -> dict:
        payload = {'error': self.message, 'code': self.code}
        if self.details is not None:
            payload['details'] = self.details
        return payload


class ValidationError(ContractManagerError):
    """Malformed input: bad config shape, missing fields, non-numeric salary."""

    status_code = 400
    default_code = 'VALIDATION_ERROR'


class NotFoundError(ContractManagerError):
    status_code = 404
    default_code = 'NOT_FOUND'


class AuthorizationError(ContractManagerError):
    status_code = 403
    default_code = 'FORBIDDEN'


class ConflictError(ContractManagerError):
    """Request conflicts with the contract's current state."""

    status_code = 400
    default_code = 'CONFLICT'


class PersistenceFailure(ContractManagerError):
    """A batch write failed; the whole batch was rolled back."""

    status_code = 500
    default_code = 'PERSISTENCE_FAILURE'


# Error codes
LEAGUE_NOT_FOUND = 'LEAGUE_NOT_FOUND'
CONTRACT_NOT_FOUND = 'CONTRACT_NOT_FOUND'
INVALID_DEAD_MONEY_CONFIG = 'INVALID_DEAD_MONEY_CONFIG'
NOT_COMMISSIONER = 'NOT_COMMISSIONER'
ALREADY_EXTENDED = 'ALREADY_EXTENDED'
ALREADY_TAGGED = 'ALREADY_TAGGED'
NOT_ELIGIBLE = 'NOT_ELIGIBLE'
TAG_LIMIT_REACHED = 'TAG_LIMIT_REACHED'
DUPLICATE_ACTIVE_CONTRACT = 'DUPLICATE_ACTIVE_CONTRACT'
CAP_EXCEEDED = 'CAP_EXCEEDED'
CONTRACT_NOT_ACTIVE = 'CONTRACT_NOT_ACTIVE'
TURNOVER_IN_PROGRESS = 'TURNOVER_IN_PROGRESS'
TURNOVER_FAILED = 'TURNOVER_FAILED'
