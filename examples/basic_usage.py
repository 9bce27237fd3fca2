"""
Warden — Basic Usage Example

Walks through the client flow: stretch the master password, create and
unwrap an account key, then encrypt and decrypt a vault item.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from warden import (
    IntegrityError,
    CipherString,
    WardenConfig,
    configure_logging,
    decrypt,
    encrypt,
    hash_password,
    make_enc_key,
    make_key,
    unwrap_enc_key,
)


def main():
    config = WardenConfig()
    configure_logging(config.log_level)

    # What the user types, and the account salt (the client apps use the email)
    password = "my-master-password-change-this"
    email = "user@example.com"

    print("=" * 50)
    print("  Warden — Client Envelope Walkthrough")
    print("=" * 50)

    # 1. Stretch the password. The server only ever receives the login hash.
    master_key = make_key(password, email)
    login_hash = hash_password(password, email)
    print(f"\nLogin hash:     {login_hash}")

    # 2. Create the account key, wrapped under the master key
    wrapped = make_enc_key(master_key)
    print(f"Wrapped key:    {str(wrapped)[:60]}...")

    # 3. Unwrap it into an AES key and a MAC key
    keys = unwrap_enc_key(str(wrapped), master_key)

    # 4. Encrypt a vault item
    item = encrypt(b"secret note", keys.enc_key, keys.mac_key)
    text = str(item)
    print(f"Encrypted item: {text}")

    # 5. Decrypt it again
    plaintext = decrypt(text, keys.enc_key, keys.mac_key)
    print(f"Decrypted:      {plaintext.decode()}")

    # 6. Tampering is caught before anything is decrypted
    swapped = "B" if item.ct[0] == "A" else "A"
    tampered = CipherString(item.type, item.iv, swapped + item.ct[1:], item.mac)
    try:
        decrypt(tampered, keys.enc_key, keys.mac_key)
    except IntegrityError as e:
        print(f"Tampered item:  rejected ({e})")


if __name__ == "__main__":
    main()
