"""
CipherString
The text envelope shared with the client apps.

Format:
  TYPE.IV|CIPHERTEXT          (unauthenticated variants)
  TYPE.IV|CIPHERTEXT|MAC      (MAC-protected variants)

TYPE is a single digit. IV, CIPHERTEXT and MAC are base64. Parsing checks
only the shape; the type and the base64 fields are validated when the
envelope is decrypted.
"""

import re
from dataclasses import dataclass
from enum import IntEnum

from warden.errors import InvalidCipherString, UnsupportedCipherType


class CipherType(IntEnum):
    """Cipher algorithm and encoding of an envelope."""
    AESCBC256_B64 = 0
    AESCBC128_HMACSHA256_B64 = 1
    AESCBC256_HMACSHA256_B64 = 2
    RSA2048_OAEPSHA256_B64 = 3
    RSA2048_OAEPSHA1_B64 = 4
    RSA2048_OAEPSHA256_HMACSHA256_B64 = 5
    RSA2048_OAEPSHA1_HMACSHA256_B64 = 6

    @property
    def has_mac(self) -> bool:
        """Whether envelopes of this type carry a MAC."""
        return self in _MAC_TYPES


_MAC_TYPES = frozenset({
    CipherType.AESCBC128_HMACSHA256_B64,
    CipherType.AESCBC256_HMACSHA256_B64,
    CipherType.RSA2048_OAEPSHA256_HMACSHA256_B64,
    CipherType.RSA2048_OAEPSHA1_HMACSHA256_B64,
})

# Only the delimiters are checked here; field contents are checked on decrypt
_PATTERN = re.compile(r"(\d)\.([^|]+)\|(.+)", re.ASCII | re.DOTALL)


@dataclass(frozen=True)
class CipherString:
    """
    A parsed or freshly built envelope.

    Fields hold the base64 text exactly as it appears on the wire.
    """
    type: int
    iv: str
    ct: str
    mac: str | None = None

    @classmethod
    def parse(cls, text: str) -> "CipherString":
        """
        Parse the text form of an envelope.

        Raises:
            InvalidCipherString: If the text does not have the envelope shape.
        """
        if not isinstance(text, str):
            raise InvalidCipherString(f"invalid CipherString: {text!r}")

        match = _PATTERN.fullmatch(text)
        if match is None:
            raise InvalidCipherString(f"invalid CipherString: {text!r}")

        type_digit, iv, rest = match.groups()
        ct, _, mac = rest.partition("|")
        return cls(int(type_digit), iv, ct, mac or None)

    @property
    def cipher_type(self) -> CipherType:
        """
        The declared type as a CipherType.

        Raises:
            UnsupportedCipherType: If the digit is not a known type.
        """
        try:
            return CipherType(self.type)
        except ValueError:
            raise UnsupportedCipherType(self.type) from None

    def to_string(self) -> str:
        """Serialize back to the text form."""
        parts = [f"{self.type}.{self.iv}", self.ct]
        if self.mac is not None:
            parts.append(self.mac)
        return "|".join(parts)

    def __str__(self) -> str:
        return self.to_string()
