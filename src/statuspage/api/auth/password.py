"""Password service for hashing and verification."""

import bcrypt

from statuspage.core.errors import StatusPageError

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class PasswordTooLongError(StatusPageError):
    """Raised when a password exceeds what bcrypt can hash."""

    kind = "password_too_long"
    status_code = 400
    default_message = f"password must be at most {MAX_PASSWORD_BYTES} bytes"


class PasswordService:
    """Service for password hashing and verification."""

    def __init__(self, rounds: int = 12) -> None:
        """Initialize password service.

        Args:
            rounds: bcrypt cost factor (log2 of the iteration count)
        """
        self.rounds = rounds
        self._dummy_hash: bytes | None = None

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password

        Raises:
            PasswordTooLongError: If the password is over 72 bytes
        """
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise PasswordTooLongError()
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify_password(self, password: str, hashed: str) -> bool:
        """Verify a password against its hash.

        Args:
            password: Plain text password to verify
            hashed: Hashed password to compare against

        Returns:
            True if password matches, False otherwise
        """
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                hashed.encode("utf-8"),
            )
        except ValueError:
            # Malformed stored hash
            return False

    def burn_verification(self, password: str) -> None:
        """Spend one bcrypt comparison against a throwaway hash.

        Used when the account does not exist so that the failure takes as
        long as a wrong password.
        """
        if self._dummy_hash is None:
            self._dummy_hash = bcrypt.hashpw(b"dummy", bcrypt.gensalt(rounds=self.rounds))
        try:
            bcrypt.checkpw(password.encode("utf-8"), self._dummy_hash)
        except ValueError:
            # Over-long input is rejected by bcrypt before any hashing work
            pass
