"""
Payload encryption shared with the doctor app.

The doctor app encrypts with a passphrase in the OpenSSL "Salted__" format:
base64("Salted__" + 8-byte salt + AES-256-CBC ciphertext), where key and IV
come from MD5-based EVP_BytesToKey over passphrase + salt. Both sides must
produce and accept exactly that layout.
"""

import base64
import hashlib
import hmac
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigurationError, EncryptionError
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

SALT_HEADER = b"Salted__"
SALT_SIZE = 8
KEY_SIZE = 32
IV_SIZE = 16


def evp_bytes_to_key(passphrase: bytes, salt: bytes, key_size: int = KEY_SIZE, iv_size: int = IV_SIZE) -> tuple[bytes, bytes]:
    """Derive key and IV the way OpenSSL's EVP_BytesToKey does with MD5 and one iteration."""
    derived = b""
    block = b""
    while len(derived) < key_size + iv_size:
        block = hashlib.md5(block + passphrase + salt).digest()  # nosec B324 - wire format requires MD5
        derived += block
    return derived[:key_size], derived[key_size : key_size + iv_size]


class PayloadCipher:
    """Encrypts and decrypts UTF-8 strings with a shared passphrase."""

    def __init__(self, passphrase: str):
        if not passphrase:
            raise EncryptionError("Encryption passphrase must not be empty", direction="configure")
        self._passphrase = passphrase.encode("utf-8")

    def encrypt(self, text: str) -> str:
        """
        Encrypt a UTF-8 string.

        Args:
            text: Plaintext to encrypt

        Returns:
            Base64 ciphertext in the salted passphrase format

        Raises:
            EncryptionError: If the input cannot be encrypted
        """
        try:
            salt = os.urandom(SALT_SIZE)
            key, iv = evp_bytes_to_key(self._passphrase, salt)
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(text.encode("utf-8")) + padder.finalize()
            encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
            ciphertext = encryptor.update(padded) + encryptor.finalize()
        except (AttributeError, TypeError, ValueError) as e:
            raise EncryptionError(f"Failed to encrypt data: {e}", direction="encrypt") from e
        return base64.b64encode(SALT_HEADER + salt + ciphertext).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a base64 ciphertext produced by encrypt() or by the doctor app.

        Raises:
            EncryptionError: If the payload is malformed or the key is wrong
        """
        try:
            raw = base64.b64decode(ciphertext, validate=True)
            if not raw.startswith(SALT_HEADER) or len(raw) < len(SALT_HEADER) + SALT_SIZE + IV_SIZE:
                raise ValueError("missing salt header")
            salt = raw[len(SALT_HEADER) : len(SALT_HEADER) + SALT_SIZE]
            body = raw[len(SALT_HEADER) + SALT_SIZE :]
            key, iv = evp_bytes_to_key(self._passphrase, salt)
            decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
            padded = decryptor.update(body) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plaintext = unpadder.update(padded) + unpadder.finalize()
            return plaintext.decode("utf-8")
        except (TypeError, ValueError) as e:
            # binascii.Error and UnicodeDecodeError are both ValueError subclasses
            raise EncryptionError(f"Failed to decrypt data: {e}", direction="decrypt") from e


def hash_password(password: str) -> str:
    """Return the SHA-256 hex digest of a password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, digest: str) -> bool:
    """Check a password against a SHA-256 hex digest in constant time."""
    return hmac.compare_digest(hash_password(password), digest)


def get_cipher() -> PayloadCipher:
    """
    Build the cipher from the configured shared passphrase.

    Raises:
        ConfigurationError: If MEDOPS_ENCRYPTION_KEY is missing or invalid
    """
    from ..config import get_config

    try:
        config = get_config()
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid security configuration: {e.error_count()} error(s)", config_key="MEDOPS_ENCRYPTION_KEY"
        ) from e
    logger.debug("Building payload cipher from configuration")
    return PayloadCipher(config.security.encryption_key)
