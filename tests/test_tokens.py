"""Tests for token signing and configuration."""

import logging
import os
import stat
import tempfile
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

import jwt

from warden import configure_logging
from warden.config import WardenConfig
from warden.tokens import TokenSigner


def test_generate_persists_key():
    """A missing key file is generated with owner-only permissions."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "jwt-rsa.key"
        signer = TokenSigner.load_or_generate(path)

        assert path.exists()
        assert stat.S_IMODE(path.stat().st_mode) == 0o600
        contents = path.read_text()
        assert contents.index("BEGIN PRIVATE KEY") < contents.index("BEGIN PUBLIC KEY")
        assert signer.public_key_pem.decode() in contents
        print("  [PASS] Key generated and persisted")


def test_load_existing_key():
    """An existing key file is loaded, not replaced."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "jwt-rsa.key"
        first = TokenSigner.load_or_generate(path)
        before = path.read_bytes()

        second = TokenSigner.load_or_generate(path)
        assert path.read_bytes() == before
        assert second.public_key_pem == first.public_key_pem

        # Tokens from one instance verify on the other
        token = first.issue("user-1")
        assert second.verify(token)["sub"] == "user-1"
        print("  [PASS] Existing key loaded")


def test_sign_payload_as_is():
    """sign() signs exactly the given claims with RS256."""
    with tempfile.TemporaryDirectory() as tmpdir:
        signer = TokenSigner.load_or_generate(Path(tmpdir) / "k.pem")
        token = signer.sign({"email": "user@example.com", "premium": True})

        assert jwt.get_unverified_header(token)["alg"] == "RS256"
        claims = jwt.decode(token, signer.public_key_pem, algorithms=["RS256"])
        assert claims == {"email": "user@example.com", "premium": True}
        print("  [PASS] Payload signed as-is")


def test_issue_and_verify():
    """Issued tokens carry issuer and expiry, and verify."""
    with tempfile.TemporaryDirectory() as tmpdir:
        signer = TokenSigner.load_or_generate(
            Path(tmpdir) / "k.pem", issuer="test-issuer", lifetime=120
        )
        token = signer.issue("user-42", email="user@example.com")
        claims = signer.verify(token)

        assert claims["iss"] == "test-issuer"
        assert claims["sub"] == "user-42"
        assert claims["email"] == "user@example.com"
        assert claims["exp"] - claims["iat"] == 120
        print("  [PASS] Issue + verify")


def test_verify_rejects_foreign_token():
    """Tokens from another key or issuer are rejected."""
    with tempfile.TemporaryDirectory() as tmpdir:
        ours = TokenSigner.load_or_generate(Path(tmpdir) / "ours.pem")
        theirs = TokenSigner.load_or_generate(Path(tmpdir) / "theirs.pem")

        try:
            ours.verify(theirs.issue("user-1"))
            assert False, "foreign signature should fail"
        except jwt.InvalidSignatureError:
            pass

        other_issuer = TokenSigner(ours._private_key, issuer="someone-else")
        try:
            ours.verify(other_issuer.issue("user-1"))
            assert False, "wrong issuer should fail"
        except jwt.InvalidIssuerError:
            pass
        print("  [PASS] Foreign tokens rejected")


def test_verify_rejects_expired():
    """Expired tokens are rejected."""
    with tempfile.TemporaryDirectory() as tmpdir:
        signer = TokenSigner.load_or_generate(Path(tmpdir) / "k.pem")
        token = signer.sign({"iss": signer.issuer, "sub": "user-1", "exp": 1})
        try:
            signer.verify(token)
            assert False, "expired token should fail"
        except jwt.ExpiredSignatureError:
            pass
        print("  [PASS] Expired token rejected")


def test_config_defaults_and_env():
    """Config reads overrides from the environment."""
    names = ["WARDEN_DATA_DIR", "WARDEN_TOKEN_ISSUER", "WARDEN_TOKEN_LIFETIME", "WARDEN_LOG_LEVEL"]
    saved = {name: os.environ.pop(name, None) for name in names}
    try:
        config = WardenConfig()
        assert config.data_dir == Path("./data")
        assert config.signing_key_path == Path("./data") / "jwt-rsa.key"
        assert config.token_issuer == "warden"
        assert config.token_lifetime == 3600
        assert config.log_level == "WARNING"

        os.environ["WARDEN_DATA_DIR"] = "/srv/warden"
        os.environ["WARDEN_TOKEN_ISSUER"] = "vault.example.com"
        os.environ["WARDEN_TOKEN_LIFETIME"] = "600"
        os.environ["WARDEN_LOG_LEVEL"] = "DEBUG"
        config = WardenConfig()
        assert config.signing_key_path == Path("/srv/warden/jwt-rsa.key")
        assert config.token_issuer == "vault.example.com"
        assert config.token_lifetime == 600
        assert config.log_level == "DEBUG"

        try:
            WardenConfig(token_lifetime=0)
            assert False, "zero lifetime should fail"
        except ValueError:
            pass
    finally:
        for name, value in saved.items():
            if value is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = value
    print("  [PASS] Config defaults + env overrides")


def test_logging_level_from_config():
    """configure_logging follows WARDEN_LOG_LEVEL through the config."""
    logger = logging.getLogger("warden")
    saved_level = logger.level
    saved_env = os.environ.pop("WARDEN_LOG_LEVEL", None)
    try:
        os.environ["WARDEN_LOG_LEVEL"] = "debug"
        assert configure_logging() is logger
        assert logger.level == logging.DEBUG
        handlers = len(logger.handlers)

        configure_logging(WardenConfig(log_level="ERROR").log_level)
        assert logger.level == logging.ERROR
        assert len(logger.handlers) == handlers
    finally:
        logger.setLevel(saved_level)
        if saved_env is None:
            os.environ.pop("WARDEN_LOG_LEVEL", None)
        else:
            os.environ["WARDEN_LOG_LEVEL"] = saved_env
    print("  [PASS] Log level from config")


def test_signer_from_config():
    """from_config creates the data dir and uses the configured issuer."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config = WardenConfig(
            data_dir=Path(tmpdir) / "nested" / "data",
            token_issuer="configured",
            token_lifetime=60,
        )
        signer = TokenSigner.from_config(config)
        assert config.signing_key_path.exists()
        assert signer.issuer == "configured"
        assert signer.lifetime == 60
        assert signer.verify(signer.issue("user-1"))["iss"] == "configured"
        print("  [PASS] Signer from config")


if __name__ == "__main__":
    print("Testing token signing...\n")
    test_generate_persists_key()
    test_load_existing_key()
    test_sign_payload_as_is()
    test_issue_and_verify()
    test_verify_rejects_foreign_token()
    test_verify_rejects_expired()
    test_config_defaults_and_env()
    test_logging_level_from_config()
    test_signer_from_config()
    print(f"\n{'='*50}")
    print("All 9 token tests passed!")
