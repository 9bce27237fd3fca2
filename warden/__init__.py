"""
Warden — Client-Compatible Encryption Envelope
Key stretching, authenticated encryption and the CipherString format.

Warden speaks the same envelope as the client apps:
1. Key derivation — PBKDF2-SHA256 master key and login hash
2. Encryption — AES-256-CBC + HMAC-SHA256, checked before decrypting
3. CipherString — the "TYPE.IV|CT|MAC" text format on the wire

Usage:
    from warden import make_key, make_enc_key, unwrap_enc_key, encrypt, decrypt
    master = make_key("master password", "user@example.com")
    keys = unwrap_enc_key(make_enc_key(master), master)
    blob = str(encrypt(b"secret note", keys.enc_key, keys.mac_key))
    decrypt(blob, keys.enc_key, keys.mac_key)
"""

import logging

from warden.cipherstring import CipherString, CipherType
from warden.config import WardenConfig
from warden.engine import KeyPair, make_enc_key, encrypt, decrypt, unwrap_enc_key
from warden.errors import WardenError, InvalidCipherString, IntegrityError, UnsupportedCipherType
from warden.kdf import make_key, hash_password
from warden.mac import macs_equal
from warden.tokens import TokenSigner


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """
    Send warden's log records to stderr.

    Args:
        level: Log level. Defaults to WardenConfig().log_level, which reads
            WARDEN_LOG_LEVEL.
    """
    if level is None:
        level = WardenConfig().log_level
    logger = logging.getLogger("warden")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger


__version__ = "0.1.0"
__all__ = [
    "CipherString",
    "CipherType",
    "KeyPair",
    "TokenSigner",
    "WardenConfig",
    "WardenError",
    "InvalidCipherString",
    "IntegrityError",
    "UnsupportedCipherType",
    "configure_logging",
    "make_key",
    "hash_password",
    "make_enc_key",
    "encrypt",
    "decrypt",
    "unwrap_enc_key",
    "macs_equal",
]
