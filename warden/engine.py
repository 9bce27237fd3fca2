"""
Encryption Engine
AES-256-CBC with HMAC-SHA256, producing and consuming CipherStrings.

Encrypt-then-MAC:
  IV          ← 16 fresh random bytes per call
  Ciphertext  ← AES-256-CBC(key, IV, PKCS#7(plaintext))
  MAC         ← HMAC-SHA256(mac_key, IV || Ciphertext)

On decrypt the MAC is checked first. A mismatch raises before the
ciphertext is touched, so tampered data never produces plaintext.

Account keys are wrapped the same way the client apps do it: 64 random
bytes encrypted under the stretched master key (type 0, no MAC). The
64 bytes split into a 32-byte encryption key and a 32-byte MAC key.
"""

import base64
import binascii
import logging
import os
from dataclasses import dataclass

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from warden.cipherstring import CipherString, CipherType
from warden.errors import IntegrityError, InvalidCipherString, UnsupportedCipherType
from warden.mac import hmac_sha256, macs_equal

logger = logging.getLogger(__name__)

KEY_SIZE = 32       # AES-256
IV_SIZE = 16        # AES block
BLOCK_BITS = 128
ENC_KEY_SIZE = 64   # encryption key + MAC key


@dataclass(frozen=True)
class KeyPair:
    """An unwrapped account key: AES key plus MAC key."""
    enc_key: bytes
    mac_key: bytes


def _check_key(key: bytes, name: str = "key") -> None:
    if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_SIZE:
        raise ValueError(f"{name} must be {KEY_SIZE} bytes")


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def _unb64(value: str, field: str, error: type = InvalidCipherString) -> bytes:
    # Only canonical base64 is accepted, so no two texts decode to the same bytes
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise error(f"invalid base64 in {field}") from None
    if _b64(raw) != value:
        raise error(f"invalid base64 in {field}")
    return raw


def _aes_encrypt(plaintext: bytes, key: bytes, iv: bytes) -> bytes:
    padder = padding.PKCS7(BLOCK_BITS).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def _aes_decrypt(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
    if len(iv) != IV_SIZE or not ciphertext or len(ciphertext) % IV_SIZE:
        raise IntegrityError("ciphertext is not a whole number of AES blocks")

    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    unpadder = padding.PKCS7(BLOCK_BITS).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError:
        # Wrong key, or a legacy envelope that was modified
        raise IntegrityError("invalid padding") from None


def make_enc_key(key: bytes) -> CipherString:
    """
    Generate a new wrapped account key.

    Args:
        key: The 32-byte stretched master key.

    Returns:
        A type 0 CipherString wrapping 64 random bytes.
    """
    _check_key(key)
    plaintext = os.urandom(ENC_KEY_SIZE)
    iv = os.urandom(IV_SIZE)
    ciphertext = _aes_encrypt(plaintext, key, iv)
    logger.debug("Generated wrapped encryption key")
    return CipherString(CipherType.AESCBC256_B64.value, _b64(iv), _b64(ciphertext))


def encrypt(plaintext: str | bytes, key: bytes, mac_key: bytes) -> CipherString:
    """
    Encrypt and MAC a value under a fresh random IV.

    Args:
        plaintext: Bytes to encrypt. Strings are UTF-8 encoded.
        key: 32-byte AES key.
        mac_key: 32-byte HMAC key.

    Returns:
        A type 2 CipherString.
    """
    _check_key(key)
    _check_key(mac_key, "mac_key")
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")

    iv = os.urandom(IV_SIZE)
    ciphertext = _aes_encrypt(plaintext, key, iv)
    mac = hmac_sha256(mac_key, iv + ciphertext)

    return CipherString(
        CipherType.AESCBC256_HMACSHA256_B64.value,
        _b64(iv),
        _b64(ciphertext),
        _b64(mac),
    )


def _decrypt_aescbc256(c: CipherString, key: bytes, mac_key: bytes) -> bytes:
    logger.debug("Reading unauthenticated type %d envelope", c.type)
    iv = _unb64(c.iv, "iv")
    ciphertext = _unb64(c.ct, "ciphertext")
    return _aes_decrypt(ciphertext, key, iv)


def _decrypt_aescbc256_hmac(c: CipherString, key: bytes, mac_key: bytes) -> bytes:
    _check_key(mac_key, "mac_key")
    if c.mac is None:
        raise IntegrityError("missing mac")

    # A field that will not decode is a failed MAC check, not a parse error
    iv = _unb64(c.iv, "iv", IntegrityError)
    ciphertext = _unb64(c.ct, "ciphertext", IntegrityError)
    mac = _unb64(c.mac, "mac", IntegrityError)

    cmac = hmac_sha256(mac_key, iv + ciphertext)
    if not macs_equal(mac_key, mac, cmac):
        logger.warning("MAC verification failed, refusing to decrypt")
        raise IntegrityError("invalid mac")

    return _aes_decrypt(ciphertext, key, iv)


_DECRYPTORS = {
    CipherType.AESCBC256_B64: _decrypt_aescbc256,
    CipherType.AESCBC256_HMACSHA256_B64: _decrypt_aescbc256_hmac,
}

# Parseable, but no decrypt path yet
_UNSUPPORTED = frozenset({
    CipherType.AESCBC128_HMACSHA256_B64,
    CipherType.RSA2048_OAEPSHA256_B64,
    CipherType.RSA2048_OAEPSHA1_B64,
    CipherType.RSA2048_OAEPSHA256_HMACSHA256_B64,
    CipherType.RSA2048_OAEPSHA1_HMACSHA256_B64,
})

_unhandled = set(CipherType) - set(_DECRYPTORS) - _UNSUPPORTED
if _unhandled:
    raise ImportError(f"cipher types without a decrypt decision: {sorted(_unhandled)}")


def decrypt(value: CipherString | str, key: bytes, mac_key: bytes) -> bytes:
    """
    Verify and decrypt an envelope.

    Args:
        value: A CipherString or its text form.
        key: 32-byte AES key.
        mac_key: 32-byte HMAC key. Unused for unauthenticated types.

    Returns:
        The plaintext bytes.

    Raises:
        InvalidCipherString: Malformed text, or bad base64 in an
            unauthenticated envelope.
        IntegrityError: MAC missing or mismatched, fields of a MAC-protected
            envelope that will not decode, or invalid padding.
        UnsupportedCipherType: The type has no decrypt implementation.
    """
    c = value if isinstance(value, CipherString) else CipherString.parse(value)

    try:
        handler = _DECRYPTORS.get(c.cipher_type)
    except UnsupportedCipherType:
        logger.warning("Refusing envelope with unknown cipher type %d", c.type)
        raise

    if handler is None:
        logger.warning("No decrypt implementation for cipher type %d", c.type)
        raise UnsupportedCipherType(c.type)

    _check_key(key)
    return handler(c, key, mac_key)


def unwrap_enc_key(
    enc_key: CipherString | str,
    key: bytes,
    mac_key: bytes | None = None,
) -> KeyPair:
    """
    Decrypt a wrapped account key and split it into its two halves.

    Args:
        enc_key: The wrapped key from make_enc_key (or its text form).
        key: The 32-byte stretched master key.
        mac_key: MAC key for a MAC-protected wrapped key. Not needed for
            the type 0 keys make_enc_key produces.

    Returns:
        KeyPair with the AES key and the MAC key.
    """
    c = enc_key if isinstance(enc_key, CipherString) else CipherString.parse(enc_key)
    if mac_key is None and c.cipher_type.has_mac:
        raise ValueError(
            f"mac_key is required to unwrap a type {c.type} encryption key"
        )

    plaintext = decrypt(c, key, mac_key)
    if len(plaintext) != ENC_KEY_SIZE:
        raise IntegrityError(
            f"wrapped key is {len(plaintext)} bytes, expected {ENC_KEY_SIZE}"
        )
    return KeyPair(plaintext[:KEY_SIZE], plaintext[KEY_SIZE:])
