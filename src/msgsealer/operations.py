import logging
from pathlib import Path
from typing import Union

from msgsealer.cipher import encrypt_message
from msgsealer.keygen import DEFAULT_KEY_LENGTH_BITS, KeyPair, get_public_key_pem
from msgsealer.keystore import DEFAULT_KEY_FILENAME, load_or_create_keypair
from msgsealer.record import EncryptedRecord, assemble_encrypted_record

logger = logging.getLogger(__name__)


def seal_message(message: str, keypair: KeyPair) -> EncryptedRecord:
    """Encrypt a message with the public part of `keypair`, and assemble the resulting record."""
    ciphertext = encrypt_message(message, public_key=keypair.public_key)
    public_key_pem = get_public_key_pem(keypair)
    return assemble_encrypted_record(message, ciphertext=ciphertext, public_key_pem=public_key_pem)


def seal_message_with_keyfile(
    message: str,
    keyfile_path: Union[str, Path] = DEFAULT_KEY_FILENAME,
    key_length_bits: int = DEFAULT_KEY_LENGTH_BITS,
) -> EncryptedRecord:
    """Same as `seal_message()`, but the keypair is loaded from `keyfile_path`, which is created if needed."""
    keypair = load_or_create_keypair(keyfile_path, key_length_bits=key_length_bits)
    logger.debug("Sealing message with %r", keypair)
    return seal_message(message, keypair=keypair)
