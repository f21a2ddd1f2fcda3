import logging
import os
import threading
from pathlib import Path
from typing import Optional, Union

from msgsealer.exceptions import FunctionalError, KeyFileDoesNotExist, KeyFileWritingError, KeyGenerationError
from msgsealer.keygen import (
    DEFAULT_KEY_LENGTH_BITS,
    KeyPair,
    generate_keypair,
    get_private_key_pem,
    load_keypair_from_file,
)
from msgsealer.utilities import synchronized

logger = logging.getLogger(__name__)

DEFAULT_KEY_FILENAME = "private.pem"

KEY_FILE_PERMISSIONS = 0o600


def _write_key_file(filepath: Path, data: bytes):
    # Permissions are set before any key material is written, even when overwriting an existing file
    fd = os.open(filepath, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KEY_FILE_PERMISSIONS)
    with os.fdopen(fd, "wb") as f:
        os.chmod(filepath, KEY_FILE_PERMISSIONS)
        f.write(data)


def _create_key_file(filepath: Path, key_length_bits: int) -> KeyPair:
    """Generate a keypair, persist it as PEM, and reload it from the written bytes."""
    keypair = generate_keypair(key_length_bits=key_length_bits)
    private_key_pem = get_private_key_pem(keypair)

    try:
        _write_key_file(filepath, private_key_pem.encode("ascii"))
    except OSError as exc:
        raise KeyFileWritingError("Couldn't write private key to %s (%s)" % (filepath, exc)) from exc
    logger.info("New RSA private key of %d bits written to %s", key_length_bits, filepath)

    # Round-trip through the filesystem, so that in-memory and on-disk keys are guaranteed identical
    reloaded_keypair = load_keypair_from_file(filepath)
    if reloaded_keypair != keypair:
        raise KeyGenerationError("Private key stored in %s differs from the generated one" % filepath)
    return reloaded_keypair


def load_or_create_keypair(
    filepath: Union[str, Path] = DEFAULT_KEY_FILENAME, key_length_bits: int = DEFAULT_KEY_LENGTH_BITS
) -> KeyPair:
    """Load the keypair stored in an unencrypted PEM key file, or create this file if loading fails.

    Any loading failure (missing, malformed or undecodable file) leads to the generation of a new key,
    which OVERWRITES the existing file. Generation and writing errors are left to propagate.

    :param filepath: path of the PEM key file
    :param key_length_bits: modulus size used if a new key must be generated

    :return: KeyPair instance"""
    filepath = Path(filepath)
    try:
        return load_keypair_from_file(filepath)
    except KeyFileDoesNotExist:
        logger.info("No private key found at %s, generating a new one", filepath)
    except (FunctionalError, OSError) as exc:
        logger.warning("Couldn't load private key from %s (%r), generating a new one", filepath, exc)
    return _create_key_file(filepath, key_length_bits=key_length_bits)


class FilesystemKeyfile:
    """
    Process-wide cached access to the keypair of a single PEM key file.

    The first call to `get_keypair()` loads (or creates) the key file, following
    `load_or_create_keypair()` rules; later calls reuse the cached keypair. A lock ensures
    that concurrent threads never generate two different keys for the same missing file.

    Not safe against other PROCESSES creating the same key file concurrently.
    """

    def __init__(self, filepath: Union[str, Path] = DEFAULT_KEY_FILENAME, key_length_bits: int = DEFAULT_KEY_LENGTH_BITS):
        self._filepath = Path(filepath).absolute()
        self._key_length_bits = key_length_bits
        self._keypair: Optional[KeyPair] = None
        self._lock = threading.Lock()

    @property
    def filepath(self) -> Path:
        return self._filepath

    @synchronized
    def get_keypair(self) -> KeyPair:
        if self._keypair is None:
            self._keypair = load_or_create_keypair(self._filepath, key_length_bits=self._key_length_bits)
        return self._keypair

    @synchronized
    def forget_keypair(self):
        """Drop the cached keypair, so that next access reloads the key file."""
        self._keypair = None
