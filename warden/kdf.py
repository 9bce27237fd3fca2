"""
Key Derivation
Master password stretching and login hashing, as the client apps do it.

  Password + Salt → Master Key      (PBKDF2-SHA256, 5000 iterations)
  Master Key + Password → Login Hash (PBKDF2-SHA256, 1 iteration)

The expensive stretch runs on the client. The server only ever sees the
login hash, never the password or the master key.
"""

import base64

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC


# Fixed by the client protocol
KDF_ITERATIONS = 5000
HASH_ITERATIONS = 1
KEY_SIZE = 32    # 256 bits


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _pbkdf2(password: bytes, salt: bytes, iterations: int) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password)


def make_key(password: str | bytes, salt: str | bytes) -> bytes:
    """Stretch a password and salt into a 32-byte master key."""
    return _pbkdf2(_to_bytes(password), _to_bytes(salt), KDF_ITERATIONS)


def hash_password(password: str | bytes, salt: str | bytes) -> str:
    """
    Compute the base64 login hash for a password and salt.

    The master key is fed back through a single PBKDF2 round, salted with
    the password itself. This is the value compared against the stored
    hash at login.

    Args:
        password: The user's master password.
        salt: The account salt (the client apps use the email address).

    Returns:
        Base64-encoded 32-byte hash.
    """
    password = _to_bytes(password)
    key = make_key(password, salt)
    return base64.b64encode(_pbkdf2(key, password, HASH_ITERATIONS)).decode()
