"""Password-keyed AES-256-CTR used by the access handshake.

The key and counter block are derived from the shared secret with OpenSSL's
EVP_BytesToKey scheme (MD5, one round, no salt). The access service runs the
same derivation, which is what lets it recompute the hash from the secret it
stores for an application key.
"""

import hashlib
import json

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

KEY_SIZE = 32
IV_SIZE = 16


def derive_key_and_iv(secret: str | bytes, key_size: int = KEY_SIZE, iv_size: int = IV_SIZE) -> tuple[bytes, bytes]:
    password = secret.encode("utf-8") if isinstance(secret, str) else secret
    material = b""
    block = b""
    while len(material) < key_size + iv_size:
        block = hashlib.md5(block + password).digest()
        material += block
    return material[:key_size], material[key_size : key_size + iv_size]


def encrypt(plaintext: bytes, secret: str | bytes) -> bytes:
    key, iv = derive_key_and_iv(secret)
    encryptor = Cipher(algorithms.AES(key), modes.CTR(iv)).encryptor()
    return encryptor.update(plaintext) + encryptor.finalize()


def handshake_payload(key: str, time_ms: int) -> str:
    # Compact separators, key before time: the service hashes this exact text.
    return json.dumps({"key": key, "time": time_ms}, separators=(",", ":"), ensure_ascii=False)


def build_handshake_hash(key: str, secret: str, time_ms: int) -> str:
    """Hex ciphertext sent as the `hash` header of an access request."""
    return encrypt(handshake_payload(key, time_ms).encode("utf-8"), secret).hex()
