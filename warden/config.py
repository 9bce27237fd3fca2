"""
Configuration for Warden.

Values come from the environment where a deployment needs to change
them. The cipher and KDF parameters are not here: they are fixed by the
client protocol.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return int(value)


@dataclass
class WardenConfig:
    """Runtime configuration."""

    # Storage
    data_dir: Path = field(
        default_factory=lambda: Path(os.getenv("WARDEN_DATA_DIR", "./data"))
    )
    signing_key_file: str = "jwt-rsa.key"

    # Token signing
    token_issuer: str = field(
        default_factory=lambda: os.getenv("WARDEN_TOKEN_ISSUER", "warden")
    )
    token_lifetime: int = field(
        default_factory=lambda: _env_int("WARDEN_TOKEN_LIFETIME", 3600)
    )
    rsa_key_size: int = 2048

    # Logging
    log_level: str = field(
        default_factory=lambda: os.getenv("WARDEN_LOG_LEVEL", "WARNING")
    )

    def __post_init__(self):
        self.data_dir = Path(self.data_dir)
        if self.token_lifetime <= 0:
            raise ValueError("token_lifetime must be positive")

    @property
    def signing_key_path(self) -> Path:
        """Path to the PEM file holding the token signing key."""
        return self.data_dir / self.signing_key_file
