"""JWT and password hashing configuration for authentication."""

import os
import secrets
from dataclasses import dataclass, field


@dataclass
class JWTConfig:
    """JWT configuration settings."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("JWT_SECRET_KEY", secrets.token_hex(32))
    )
    algorithm: str = "HS256"
    access_token_expire_minutes: int = field(
        default_factory=lambda: int(os.getenv("JWT_ACCESS_TOKEN_MINUTES", "15"))
    )
    refresh_token_expire_days: int = field(
        default_factory=lambda: int(os.getenv("JWT_REFRESH_TOKEN_DAYS", "7"))
    )
    bcrypt_rounds: int = field(
        default_factory=lambda: int(os.getenv("BCRYPT_ROUNDS", "12"))
    )

    def __post_init__(self) -> None:
        # Only symmetric HMAC signing is accepted
        if not self.algorithm.startswith("HS"):
            raise ValueError(f"Unsupported JWT algorithm: {self.algorithm}")
