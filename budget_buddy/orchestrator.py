"""
Main Orchestrator for Budget Buddy

This module ties together all the components and defines the
end-to-end flows for:
1. Sign-in / registration (credentials → principal → session → initial load)
2. Choosing the record store backend

DESIGN DECISION: The orchestrator enforces the boundaries:
- An auth failure is a displayable message, never a half-built session
- A session exists only for a principal the auth provider vouched for
- Every step is audited

This is the "glue" that ensures the system works correctly
even when individual components might behave unexpectedly.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from budget_buddy.alerts import AlertEngine
from budget_buddy.audit import AuditLogger, configure_log_level
from budget_buddy.config import get_settings
from budget_buddy.services.auth import AuthError, AuthProviderInterface, Principal
from budget_buddy.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    RecordStoreInterface,
)
from budget_buddy.session import UserSession


logger = structlog.get_logger(__name__)


@dataclass
class SignInResult:
    """Either a started session or a message to show the user."""
    session: Optional[UserSession] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.session is not None


def create_record_store(use_storage: bool = True) -> RecordStoreInterface:
    """
    Factory function for the record store.

    Args:
        use_storage: Whether to use Google Sheets storage.
                    Set to False for development without storage.

    Returns:
        GoogleSheetsRecordStore when it connects, else InMemoryRecordStore
    """
    if use_storage:
        try:
            client = GoogleSheetsClient()
            client.connect()
            return GoogleSheetsRecordStore(client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))

    return InMemoryRecordStore()


async def _open_session(
    principal: Principal,
    record_store: RecordStoreInterface,
    audit_logger: AuditLogger,
    engine: Optional[AlertEngine],
) -> UserSession:
    app_settings = get_settings().app
    configure_log_level(app_settings.log_level)
    session = UserSession(
        principal,
        record_store,
        engine=engine or AlertEngine.from_settings(app_settings),
        audit_logger=audit_logger,
    )
    await session.start()
    return session


async def sign_in(
    auth: AuthProviderInterface,
    email: str,
    password: str,
    record_store: RecordStoreInterface,
    audit_logger: Optional[AuditLogger] = None,
    engine: Optional[AlertEngine] = None,
) -> SignInResult:
    """
    Authenticate and open a loaded session.

    Auth errors come back as SignInResult.error; nothing else is touched.
    """
    audit_logger = audit_logger or AuditLogger()
    try:
        principal = await auth.sign_in(email, password)
    except AuthError as e:
        audit_logger.log_sign_in_failed(email, str(e))
        return SignInResult(error=str(e))

    session = await _open_session(principal, record_store, audit_logger, engine)
    return SignInResult(session=session)


async def register(
    auth: AuthProviderInterface,
    name: str,
    email: str,
    password: str,
    record_store: RecordStoreInterface,
    audit_logger: Optional[AuditLogger] = None,
    engine: Optional[AlertEngine] = None,
) -> SignInResult:
    """Create an account and open a session for it."""
    audit_logger = audit_logger or AuditLogger()
    try:
        principal = await auth.register(name, email, password)
    except AuthError as e:
        audit_logger.log_sign_in_failed(email, str(e))
        return SignInResult(error=str(e))

    # New accounts on the development store start with sample data
    if isinstance(record_store, InMemoryRecordStore):
        record_store.seed_demo_data(principal.id)

    session = await _open_session(principal, record_store, audit_logger, engine)
    return SignInResult(session=session)
