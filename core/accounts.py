"""
Account registration, login and signed session tokens.
"""

import logging
import uuid
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from core.config import GameSettings
from core.errors import UnknownUser, ValidationError
from core.models import UserAccount
from core.store import GameStore

log = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AccountService:
    """Creates accounts in the GameStore and issues / verifies bearer tokens."""

    def __init__(self, store: GameStore, settings: Optional[GameSettings] = None):
        self.store = store
        self.settings = settings or GameSettings()
        self._serializer = URLSafeTimedSerializer(self.settings.secret, salt="hexminer-auth")

    def register(self, email, password) -> UserAccount:
        """
        Create a new account with the starting balances.

        Raises:
            ValidationError: INVALID_EMAIL, INVALID_PASSWORD or EMAIL_IN_USE
        """
        if not isinstance(email, str) or "@" not in email:
            raise ValidationError("INVALID_EMAIL")
        if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("INVALID_PASSWORD")

        normalized = email.strip().lower()
        with self.store.lock:
            if self.store.find_user_by_email(normalized):
                raise ValidationError("EMAIL_IN_USE")
            user = UserAccount(
                id=str(uuid.uuid4()),
                email=normalized,
                password_hash=generate_password_hash(password),
                balance=self.settings.starting_balance,
                usdt_balance=self.settings.starting_usdt,
            )
            self.store.add_user(user)

        log.info(f"Registered user {user.id} ({user.email})")
        return user

    def login(self, email, password) -> UserAccount:
        """
        Raises:
            ValidationError: INVALID_CREDENTIALS
        """
        if not isinstance(email, str) or not isinstance(password, str):
            raise ValidationError("INVALID_CREDENTIALS")
        with self.store.lock:
            user = self.store.find_user_by_email(email)
        if user is None or not check_password_hash(user.password_hash, password):
            log.info(f"Failed login for {email!r}")
            raise ValidationError("INVALID_CREDENTIALS")
        return user

    def issue_token(self, user: UserAccount) -> str:
        return self._serializer.dumps({"user_id": user.id})

    def verify_token(self, token: str) -> UserAccount:
        """
        Raises:
            UnknownUser: bad signature, expired token or deleted account
        """
        try:
            payload = self._serializer.loads(token, max_age=self.settings.token_max_age_seconds)
        except SignatureExpired:
            raise UnknownUser("token expired")
        except BadSignature:
            raise UnknownUser("invalid token")
        user_id = payload.get("user_id") if isinstance(payload, dict) else None
        if not isinstance(user_id, str):
            raise UnknownUser("invalid token")
        return self.store.get_user(user_id)
