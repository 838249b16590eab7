"""Interface to the Sage 50 session SDK.

The connector never talks to the SDK directly; an adapter implementing
``AccountingSession`` is supplied at start-up and translates SDK failures
into the ``AccountingError`` hierarchy below.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class AccountingError(RuntimeError):
    """Generic Sage 50 internal error."""


class ApplicationIdentifierExpiredError(AccountingError):
    pass


class ApplicationIdentifierRejectedError(AccountingError):
    pass


class LicenseNotAvailableError(AccountingError):
    pass


class RecordInUseError(AccountingError):
    pass


class AuthorizationError(AccountingError):
    pass


class AuthorizationResult(str, Enum):
    GRANTED = "granted"
    PENDING = "pending"
    DENIED = "denied"
    NO_CREDENTIALS = "no_credentials"


@dataclass(frozen=True)
class CompanyIdentifier:
    company_name: str
    path: str


class Company(Protocol):
    @property
    def is_closed(self) -> bool: ...

    def close(self) -> None: ...


class AccountingSession(Protocol):
    @property
    def session_active(self) -> bool: ...

    def begin(self, application_id: str) -> None: ...

    def end(self) -> None: ...

    def verify_access(self, company_id: CompanyIdentifier) -> AuthorizationResult: ...

    def request_access(self, company_id: CompanyIdentifier) -> AuthorizationResult: ...

    def company_list(self) -> list[CompanyIdentifier]: ...

    def open(self, company_id: CompanyIdentifier) -> Company: ...
