"""
Encryption at rest for integration access/refresh tokens.

Fernet symmetric encryption from the `cryptography` package, keyed by
ENCRYPTION_KEY. Without a key (development only) tokens pass through as-is.
"""

import logging
from functools import lru_cache
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from dashboard.config import get_settings

logger = logging.getLogger(__name__)


class TokenCipher:
    def __init__(self, key: Optional[str]):
        self._fernet: Optional[Fernet] = None
        if key:
            try:
                self._fernet = Fernet(key.encode())
            except Exception as exc:
                raise RuntimeError(f"Invalid ENCRYPTION_KEY: {exc}") from exc

    @property
    def enabled(self) -> bool:
        return self._fernet is not None

    def encrypt(self, plaintext: Optional[str]) -> Optional[str]:
        if plaintext is None or self._fernet is None:
            return plaintext
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: Optional[str]) -> Optional[str]:
        if ciphertext is None or self._fernet is None:
            return ciphertext
        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken:
            # Stored before a key was configured
            logger.warning("Failed to decrypt integration token — returning as-is.")
            return ciphertext


@lru_cache
def get_token_cipher() -> TokenCipher:
    settings = get_settings()
    if not settings.encryption_key:
        if settings.is_production:
            raise RuntimeError("ENCRYPTION_KEY must be set in production.")
        logger.warning(
            "ENCRYPTION_KEY not set — integration tokens will be stored in plaintext. "
            "This is acceptable for local development only."
        )
    return TokenCipher(settings.encryption_key)
