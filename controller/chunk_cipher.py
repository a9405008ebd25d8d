"""Per-chunk AES-256-GCM encryption with fresh key material for every chunk."""

import secrets
from typing import Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from common.constants import ENCRYPTION_KEY_BYTES, ENCRYPTION_IV_BYTES
from controller.exceptions import DecryptionError


def generate_key() -> bytes:
    """Random 256-bit key."""
    return secrets.token_bytes(ENCRYPTION_KEY_BYTES)


def generate_iv() -> bytes:
    """Random 96-bit nonce."""
    return secrets.token_bytes(ENCRYPTION_IV_BYTES)


def encrypt_chunk(plaintext: bytes) -> Tuple[bytes, str, str]:
    """
    Encrypt one chunk under a newly generated key and IV.

    Args:
        plaintext: Raw chunk bytes

    Returns:
        (ciphertext, key_hex, iv_hex)
    """
    key = generate_key()
    iv = generate_iv()
    ciphertext = AESGCM(key).encrypt(iv, plaintext, None)
    return ciphertext, key.hex(), iv.hex()


def decrypt_chunk(ciphertext: bytes, key_hex: str, iv_hex: str) -> bytes:
    """
    Decrypt one chunk with the key and IV recorded in the registry.

    Raises:
        DecryptionError: On malformed key material, a wrong key or tampered ciphertext
    """
    try:
        key = bytes.fromhex(key_hex)
        iv = bytes.fromhex(iv_hex)
    except (TypeError, ValueError) as e:
        raise DecryptionError(f"Malformed key material: {e}") from e

    if len(key) != ENCRYPTION_KEY_BYTES or len(iv) != ENCRYPTION_IV_BYTES:
        raise DecryptionError("Key or IV has the wrong length")

    try:
        return AESGCM(key).decrypt(iv, ciphertext, None)
    except InvalidTag as e:
        raise DecryptionError("Ciphertext does not authenticate under the recorded key") from e
