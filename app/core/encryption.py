"""
Token encryption utilities for calendar OAuth tokens.

Uses Fernet (symmetric encryption) to encrypt OAuth tokens at rest.
Tokens are encrypted before storage and decrypted when needed for API calls.
"""

import logging
from typing import Optional
from cryptography.fernet import Fernet, InvalidToken
from app.core.config import settings

logger = logging.getLogger(__name__)


class TokenEncryption:
    """
    Encrypt/decrypt OAuth tokens using Fernet symmetric encryption.

    Without a key, tokens pass through unchanged (development only).
    """

    def __init__(self, key: Optional[str]):
        self.cipher: Optional[Fernet] = None
        if not key:
            logger.warning(
                "ENCRYPTION_KEY not set. Calendar tokens will be stored unencrypted. "
                "Generate a key with Fernet.generate_key()"
            )
            return
        try:
            self.cipher = Fernet(key.encode())
        except ValueError as e:
            logger.error(f"Invalid ENCRYPTION_KEY: {e}")

    def encrypt(self, token: str) -> str:
        if not self.cipher:
            return token
        return self.cipher.encrypt(token.encode()).decode()

    def decrypt(self, encrypted_token: str) -> str:
        """
        Decrypt a stored token.

        Raises:
            InvalidToken: If the token was encrypted with another key or tampered with
        """
        if not self.cipher:
            return encrypted_token
        try:
            return self.cipher.decrypt(encrypted_token.encode()).decode()
        except InvalidToken:
            logger.error("Token decryption failed: invalid token or key")
            raise


# Singleton instance
token_encryption = TokenEncryption(settings.ENCRYPTION_KEY)
