"""
Token Signing
RS256 access tokens signed with a persistent RSA key.

The signing key is loaded once at startup: read from disk if it exists,
otherwise generated and written with owner-only permissions. The
resulting TokenSigner is immutable and can be shared between threads.
"""

import logging
import os
import time
from pathlib import Path

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from warden.config import WardenConfig

logger = logging.getLogger(__name__)

ALGORITHM = "RS256"
PUBLIC_EXPONENT = 65537


class TokenSigner:
    """
    Signs and verifies access tokens.

    Args:
        private_key: RSA private key used for signing.
        issuer: Value of the "iss" claim on issued tokens.
        lifetime: Token lifetime in seconds.
    """

    def __init__(
        self,
        private_key: rsa.RSAPrivateKey,
        issuer: str = "warden",
        lifetime: int = 3600,
    ):
        self._private_key = private_key
        self._public_key = private_key.public_key()
        self.issuer = issuer
        self.lifetime = lifetime

    @classmethod
    def load_or_generate(
        cls,
        path: str | Path,
        issuer: str = "warden",
        lifetime: int = 3600,
        key_size: int = 2048,
    ) -> "TokenSigner":
        """
        Load the signing key from path, or create and persist a new one.

        The key file holds the PEM private key followed by the PEM public
        key, and is created with mode 0600.
        """
        path = Path(path)
        if path.exists():
            private_key = serialization.load_pem_private_key(
                path.read_bytes(), password=None
            )
            if not isinstance(private_key, rsa.RSAPrivateKey):
                raise ValueError(f"{path} does not hold an RSA private key")
            logger.info("Loaded token signing key from %s", path)
        else:
            private_key = rsa.generate_private_key(
                public_exponent=PUBLIC_EXPONENT, key_size=key_size
            )
            _write_key(path, private_key)
            logger.info("Generated new token signing key at %s", path)

        return cls(private_key, issuer=issuer, lifetime=lifetime)

    @classmethod
    def from_config(cls, config: WardenConfig) -> "TokenSigner":
        """Build a signer from the application config."""
        config.data_dir.mkdir(parents=True, exist_ok=True)
        return cls.load_or_generate(
            config.signing_key_path,
            issuer=config.token_issuer,
            lifetime=config.token_lifetime,
            key_size=config.rsa_key_size,
        )

    def sign(self, payload: dict) -> str:
        """Sign a payload as-is and return the compact token."""
        return jwt.encode(payload, self._private_key, algorithm=ALGORITHM)

    def issue(self, subject: str, **claims) -> str:
        """
        Issue a token for a subject with issuer and expiry claims.

        Args:
            subject: Value of the "sub" claim (the user id).
            **claims: Extra claims to include.

        Returns:
            The signed token.
        """
        now = int(time.time())
        payload = {
            "iss": self.issuer,
            "sub": subject,
            "iat": now,
            "nbf": now,
            "exp": now + self.lifetime,
        }
        payload.update(claims)
        return self.sign(payload)

    def verify(self, token: str) -> dict:
        """
        Verify a token issued by this signer and return its claims.

        Raises:
            jwt.InvalidTokenError: Bad signature, wrong issuer, or expired.
        """
        return jwt.decode(
            token,
            self._public_key,
            algorithms=[ALGORITHM],
            issuer=self.issuer,
        )

    @property
    def public_key_pem(self) -> bytes:
        """The verification key in PEM format."""
        return self._public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )


def _write_key(path: Path, private_key: rsa.RSAPrivateKey) -> None:
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    fd = os.open(path, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(private_pem)
        f.write(public_pem)
