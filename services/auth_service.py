# services/auth_service.py
"""
Email/password accounts kept in the document store.

Accounts live at ``auth_accounts/{lowercased email}`` so that the email is unique
by construction; profiles are a separate concern (see ``session_service``).
"""
from dataclasses import dataclass
from typing import Callable, List, Optional
import logging

from core.document_store import DocumentStore, join_path, new_document_id
from core.exceptions import AuthError, FormValidationError
from core.security import create_access_token, hash_password, verify_password
from models.models import COLLECTION_AUTH_ACCOUNTS, COLLECTION_REVOKED_TOKENS
from schemas.common import now_json
from schemas.user_schema import AuthIdentity

logger = logging.getLogger(__name__)

AuthListener = Callable[[Optional[AuthIdentity]], None]


@dataclass
class AuthToken:
    identity: AuthIdentity
    access_token: str
    token_id: str
    token_type: str = "bearer"


def account_path(email: str) -> str:
    return join_path(COLLECTION_AUTH_ACCOUNTS, email.strip().lower())


class AuthStateListeners:
    """Callbacks told about sign-in (with the identity) and sign-out (with ``None``)."""

    def __init__(self):
        self._listeners: List[AuthListener] = []

    def subscribe(self, callback: AuthListener) -> Callable[[], None]:
        """Register ``callback(identity_or_None)``; returns a function that removes it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def emit(self, identity: Optional[AuthIdentity]) -> None:
        for listener in list(self._listeners):
            try:
                listener(identity)
            except Exception as e:
                logger.error("❌ Auth state listener failed: %s", e)


class AuthService:
    def __init__(self, store: DocumentStore, listeners: Optional[AuthStateListeners] = None):
        self.store = store
        self.listeners = listeners or AuthStateListeners()

    # ========================================
    # 🔔 Auth state listeners
    # ========================================
    def on_auth_state_changed(self, callback: AuthListener) -> Callable[[], None]:
        return self.listeners.subscribe(callback)

    # ========================================
    # ✅ Accounts
    # ========================================
    def sign_up(self, email: str, password: str) -> AuthIdentity:
        path = account_path(email)
        uid = new_document_id()

        def create(txn):
            if txn.get(path).exists:
                raise FormValidationError("An account with this email already exists. Please log in instead.")
            txn.set(path, {
                "uid": uid,
                "email": email.strip().lower(),
                "passwordHash": hash_password(password),
                "createdAt": now_json(),
            })

        self.store.run_transaction(create).unwrap()
        logger.info("✅ Account created for %s", email)
        return AuthIdentity(uid=uid, email=email.strip().lower())

    def authenticate(self, email: str, password: str) -> AuthIdentity:
        """Check credentials without starting a session."""
        account = self.store.get(account_path(email))
        if not account.exists or not verify_password(password, account.get("passwordHash", "")):
            logger.info("Failed sign-in for %s", email)
            raise AuthError()
        return AuthIdentity(uid=account.get("uid"), email=account.get("email"))

    def issue_token(self, identity: AuthIdentity) -> AuthToken:
        token, token_id = create_access_token(identity.uid, identity.email)
        self.listeners.emit(identity)
        return AuthToken(identity=identity, access_token=token, token_id=token_id)

    def sign_in(self, email: str, password: str) -> AuthToken:
        return self.issue_token(self.authenticate(email, password))

    def sign_out(self, token_id: str, uid: Optional[str] = None) -> None:
        self.store.set(join_path(COLLECTION_REVOKED_TOKENS, token_id), {
            "uid": uid,
            "revokedAt": now_json(),
        })
        self.listeners.emit(None)

    def is_revoked(self, token_id: str) -> bool:
        return self.store.get(join_path(COLLECTION_REVOKED_TOKENS, token_id)).exists

    def delete_account(self, email: str) -> None:
        self.store.delete(account_path(email))
