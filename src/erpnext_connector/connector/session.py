"""Sage 50 session and company lifecycle.

``SessionManager`` is the only owner of the session and company handles.
None of its operations raise: every SDK failure is logged and turned into a
status notification, and the next scheduled cycle starts over.
"""
from __future__ import annotations

from collections.abc import Callable

from erpnext_connector.common.logging import get_logger
from erpnext_connector.connector.accounting import (
    AccountingError,
    AccountingSession,
    ApplicationIdentifierExpiredError,
    ApplicationIdentifierRejectedError,
    AuthorizationError,
    AuthorizationResult,
    Company,
    CompanyIdentifier,
    LicenseNotAvailableError,
    RecordInUseError,
)
from erpnext_connector.connector.events import EventBus

log = get_logger("sage-session")

LOGGED_IN = "Logged In"
LOGGED_OUT = "Logged Out"


class SessionManager:
    def __init__(
        self,
        session_factory: Callable[[], AccountingSession],
        events: EventBus,
        company_name: str,
        company_file: str = "",
    ) -> None:
        self._session_factory = session_factory
        self._events = events
        self.company_name = company_name
        self.company_file = company_file
        self.session: AccountingSession | None = None
        self.company: Company | None = None

    # -- state ----------------------------------------------------------------

    @property
    def session_active(self) -> bool:
        return self.session is not None and self.session.session_active

    @property
    def company_open(self) -> bool:
        return self.company is not None and not self.company.is_closed

    def describe(self) -> dict[str, bool | None]:
        return {
            "session_initialized": self.session is not None,
            "session_active": self.session_active,
            "company_initialized": self.company is not None,
            "company_closed": self.company.is_closed if self.company is not None else None,
        }

    # -- session --------------------------------------------------------------

    def open_session(self, application_id: str) -> bool:
        if self.session is not None:
            # A company handle belongs to the session that opened it.
            self.close_company()
            self.close_session()

        session: AccountingSession | None = None
        try:
            session = self._session_factory()
            session.begin(application_id)
        except ApplicationIdentifierExpiredError as e:
            self._session_failed(e, "Your application identifier has expired")
            return False
        except ApplicationIdentifierRejectedError as e:
            self._session_failed(e, "Your application identifier was rejected.")
            return False
        except AccountingError as e:
            self._session_failed(e, str(e) or "Sage 50 reported an internal error")
            return False
        except Exception as e:
            self._session_failed(e, f"Something went wrong. {e}")
            return False

        self.session = session
        log.info("session_started")
        self._events.accounting_info("Sage 50 session has started and will try to get authorization next")
        self._events.login_state("Log in not yet confirmed")
        return True

    def _session_failed(self, error: Exception, message: str) -> None:
        self.session = None
        log.warning("session_begin_failed", error_type=type(error).__name__, error=str(error), exc_info=True)
        self._events.accounting_info(message)
        self._events.login_state(LOGGED_OUT)

    def close_session(self) -> None:
        session, self.session = self.session, None
        if session is None or not session.session_active:
            return
        try:
            session.end()
        except Exception as e:
            log.warning("session_end_failed", error=str(e), exc_info=True)
        log.info("session_ended")
        self._events.accounting_info("Sage 50 session ended")
        self._events.login_state("Logged out")

    # -- company --------------------------------------------------------------

    def _matches(self, company_id: CompanyIdentifier) -> bool:
        if not self.company_file:
            return (company_id.company_name or "").lower() == self.company_name.lower()
        return (company_id.path or "").lower() == self.company_file.lower()

    def discover_company(self) -> CompanyIdentifier | None:
        if self.session is None:
            return None
        try:
            companies = self.session.company_list()
        except Exception as e:
            log.info("company_list_failed", error=str(e))
            self._events.accounting_info(f"Something went wrong. {e}.")
            return None
        return next((c for c in companies if self._matches(c)), None)

    def open_company(self, company_id: CompanyIdentifier) -> bool:
        if self.session is None:
            return False
        try:
            self._events.accounting_info("Requesting access to your company in Sage 50...")
            result = self.session.verify_access(company_id)
            if result != AuthorizationResult.GRANTED:
                result = self.session.request_access(company_id)

            if result != AuthorizationResult.GRANTED:
                status = getattr(result, "value", result)
                log.warning("authorization_not_granted", result=status, company=company_id.company_name)
                self._events.accounting_info(
                    f"Authorization status is {status}. Still waiting for authorization to access your company..."
                )
                self._events.login_state(f"{LOGGED_OUT}. Waiting for Sage 50 authorization")
                return False

            self.company = self.session.open(company_id)
            log.info("authorization_granted", company=company_id.company_name)
            self._events.accounting_info("Access to your company was granted")
            self._events.login_state(LOGGED_IN)
            return True
        except LicenseNotAvailableError as e:
            self._company_failed(e, "Could not open your company because it seems like you do not have a license.")
        except RecordInUseError as e:
            self._company_failed(e, "Could not open your company as one or more records are in use.")
        except AuthorizationError as e:
            self._company_failed(e, f"Could not open your company as authorization failed. {e}")
        except AccountingError as e:
            self._company_failed(e, f"Could not open your company due to a Sage 50 internal error. {e}")
        except Exception as e:
            self._company_failed(e, f"Something went wrong. {e}")
        return False

    def _company_failed(self, error: Exception, message: str) -> None:
        log.warning("company_open_failed", error_type=type(error).__name__, error=str(error), exc_info=True)
        self._events.accounting_info(message)

    def discover_and_open_company(self) -> bool:
        company_id = self.discover_company()
        if company_id is None:
            self._events.accounting_info("No company was found.")
            return False
        return self.open_company(company_id)

    def close_company(self) -> None:
        company, self.company = self.company, None
        if company is None:
            return
        try:
            if not company.is_closed:
                company.close()
        except Exception as e:
            log.warning("company_close_failed", error=str(e), exc_info=True)
        self._events.accounting_info("Company was closed")
