"""
Identity Service

Minimal sign-up / sign-in over the users table. Passwords are stored as
bcrypt hashes; the plain text never leaves this module.

The returned UserSession is the only identity the rest of the app sees.
Every request made through an AuthorizedBackend is made as that session.
"""

from typing import Optional

import bcrypt
import structlog

from expense_tracker.models.user import UserAccount, UserSession
from expense_tracker.services.storage import DuplicateError, UserStorageInterface
from expense_tracker.validation import FormValidator


logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


class AuthenticationError(Exception):
    """Bad credentials, or an action that needs a session was made without one."""
    pass


class IdentityService:
    """Registers users and turns credentials into sessions."""

    def __init__(
        self,
        users: UserStorageInterface,
        rounds: int = 12,
    ):
        """
        Args:
            users: User account storage
            rounds: bcrypt cost factor
        """
        self._users = users
        self._rounds = rounds
        self._validator = FormValidator()

    def _hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def _check(password: str, password_hash: str) -> bool:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))

    async def sign_up(self, email: str, password: str) -> UserSession:
        """
        Register a new account and sign it in.

        Raises:
            ValidationError: If the email or password is malformed
            AuthenticationError: If the email is already registered
        """
        self._validator.require(self._validator.validate_credentials(email, password))

        account = UserAccount(email=email.strip(), password_hash=self._hash(password))
        try:
            account = await self._users.insert_user(account)
        except DuplicateError as e:
            logger.info("sign_up_rejected", email=account.email, reason="duplicate")
            raise AuthenticationError("An account with this email already exists") from e

        logger.info("user_signed_up", user_id=str(account.id))
        return UserSession(user_id=account.id, email=account.email)

    async def sign_in(self, email: str, password: str) -> UserSession:
        """
        Check credentials and open a session.

        Raises:
            AuthenticationError: If the email is unknown or the password is wrong
        """
        if not email or not password:
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        account = await self._users.get_user_by_email(email.strip())
        if account is None or not self._check(password, account.password_hash):
            logger.info("sign_in_rejected", email=email.strip().lower())
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        logger.info("user_signed_in", user_id=str(account.id))
        return UserSession(user_id=account.id, email=account.email)

    def sign_out(self, session: Optional[UserSession]) -> None:
        """Close a session. Sessions hold no server state, so this only logs."""
        if session is not None:
            logger.info("user_signed_out", user_id=str(session.user_id))
