from __future__ import annotations

import base64
import logging
import os

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)

_SALT_BYTES = 16
_ITERATIONS = 200_000
_SEPARATOR = "$"


def _derive_key(passphrase: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=_ITERATIONS)
    return base64.urlsafe_b64encode(kdf.derive(passphrase.encode("utf-8")))


class FieldCipher:
    """
    Reversible obfuscation for personal fields (customer name and phone).

    Opaque values look like "<salt>$<fernet token>". `reveal` fails closed: a
    wrong key or a malformed value yields "" rather than an exception, so callers
    keep showing the opaque text.
    """

    def __init__(self, key: str) -> None:
        if not key:
            raise ValueError("cipher key must not be empty")
        self._key = key

    def obfuscate(self, text: str) -> str:
        if not text:
            return ""
        salt = os.urandom(_SALT_BYTES)
        token = Fernet(_derive_key(self._key, salt)).encrypt(text.encode("utf-8"))
        salt_text = base64.urlsafe_b64encode(salt).decode("ascii")
        return f"{salt_text}{_SEPARATOR}{token.decode('ascii')}"

    def reveal(self, opaque: str, key: str | None = None) -> str:
        if not opaque:
            return ""
        salt_text, sep, token = opaque.partition(_SEPARATOR)
        if not sep or not token:
            return ""
        try:
            salt = base64.urlsafe_b64decode(salt_text.encode("ascii"))
            plain = Fernet(_derive_key(key or self._key, salt)).decrypt(token.encode("ascii"))
            return plain.decode("utf-8")
        except (InvalidToken, ValueError, UnicodeError):
            logger.debug("reveal failed for opaque value")
            return ""


def reveal_or_opaque(cipher: FieldCipher, opaque: str, key: str | None) -> str:
    """Revealed text when `key` opens the value, the opaque text otherwise."""
    if not key:
        return opaque
    return cipher.reveal(opaque, key) or opaque
