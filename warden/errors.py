"""
Errors
Distinct failure kinds raised by the envelope.

None of these are retried: a malformed envelope, a bad MAC or an unknown
cipher type will fail the same way every time.
"""


class WardenError(Exception):
    """Base class for all envelope errors."""


class InvalidCipherString(WardenError, ValueError):
    """The text envelope is malformed or one of its fields will not decode."""


class IntegrityError(WardenError):
    """
    MAC verification failed, or the decrypted payload is not well formed.

    Raised before any plaintext is returned. Treat it as tampering or
    corruption.
    """


class UnsupportedCipherType(WardenError):
    """The envelope declares a cipher type with no decrypt implementation."""

    def __init__(self, cipher_type: int):
        self.cipher_type = cipher_type
        super().__init__(f"unsupported cipher type: {cipher_type}")
