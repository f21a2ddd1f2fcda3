import logging

from msgsealer import _crypto_backend
from msgsealer.exceptions import (
    DecryptionError,
    EncryptionError,
    MessageEncodingError,
    MessageTooLongError,
    MissingArgumentError,
)
from msgsealer.utilities import UTF8_ENCODING

logger = logging.getLogger(__name__)

#: Application-level cap on plaintext size, independent of the (smaller or bigger) OAEP capacity of the key
MAX_MESSAGE_LENGTH_BYTES = 250

RSA_OAEP_HASH_SIZE_BYTES = 32  # SHA256


def get_rsa_oaep_capacity_bytes(key) -> int:
    """Return the maximum plaintext size that a single RSA-OAEP-SHA256 block can carry with this key."""
    modulus_length_bytes = (key.size_in_bits() + 7) // 8
    return modulus_length_bytes - 2 * RSA_OAEP_HASH_SIZE_BYTES - 2


def encrypt_message(message: str, public_key) -> bytes:
    """Encrypt a short text message with PKCS#1 RSA OAEP (SHA256 for both digest and MGF1, empty label).

    Fresh randomness is used for each call, so the same message never gives the same ciphertext twice.

    :param message: text to encrypt, at most MAX_MESSAGE_LENGTH_BYTES once utf8-encoded
    :param public_key: RSA key object (a private key works too)

    :return: ciphertext, as long as the key modulus"""
    if message is None:
        raise MissingArgumentError("No message provided for encryption")
    try:
        plaintext = message.encode(UTF8_ENCODING)
    except UnicodeEncodeError as exc:
        raise MessageEncodingError("Message is not valid unicode text (%s)" % exc) from exc
    if len(plaintext) > MAX_MESSAGE_LENGTH_BYTES:
        raise MessageTooLongError(
            "Message length must be under %d bytes, got %d" % (MAX_MESSAGE_LENGTH_BYTES, len(plaintext))
        )

    encrypter = _crypto_backend.build_rsa_oaep_cipher(public_key).encrypt
    try:
        ciphertext = encrypter(plaintext)
    except (ValueError, TypeError) as exc:
        raise EncryptionError(
            "Failed RSA_OAEP encryption of %d bytes, key capacity is %d bytes (%s)"
            % (len(plaintext), get_rsa_oaep_capacity_bytes(public_key), exc)
        ) from exc
    return ciphertext


def decrypt_ciphertext(ciphertext: bytes, private_key) -> str:
    """Decrypt a ciphertext produced by `encrypt_message()`, and return the text message."""
    decrypter = _crypto_backend.build_rsa_oaep_cipher(private_key).decrypt
    try:
        plaintext = decrypter(ciphertext)
        return plaintext.decode(UTF8_ENCODING)
    except (ValueError, TypeError) as exc:
        raise DecryptionError("Failed RSA_OAEP decryption (%s)" % exc) from exc
