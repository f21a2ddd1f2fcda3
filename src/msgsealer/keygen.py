import logging
from pathlib import Path
from typing import AnyStr, Optional, Union

from msgsealer import _crypto_backend
from msgsealer.exceptions import (
    InvalidKeyEncodingError,
    KeyFileDoesNotExist,
    KeyGenerationError,
    MissingArgumentError,
)
from msgsealer.pem import (
    decode_pem_block,
    decrypt_pem_block,
    encode_pem_block,
    PRIVATE_KEY_BLOCK_TYPE,
    PUBLIC_KEY_BLOCK_TYPE,
)

logger = logging.getLogger(__name__)

#: Not a power-of-two size, but kept as the historical default of persisted keys
DEFAULT_KEY_LENGTH_BITS = 2056

MIN_KEY_LENGTH_BITS = 1024

_PKCS1_PRIVATE_KEY_SEQUENCE_LENGTH = 9  # version, n, e, d, p, q, dp, dq, qinv


class KeyPair:
    """RSA private key, along with the public key derived from it.

    The public key can't be provided separately, and neither key is ever mutated."""

    __slots__ = ("_private_key", "_public_key")

    def __init__(self, private_key):
        assert isinstance(private_key, _crypto_backend.rsa_key_class_fetcher()), private_key
        assert private_key.has_private(), "KeyPair requires a PRIVATE key"
        self._private_key = private_key
        self._public_key = private_key.publickey()

    @property
    def private_key(self):
        return self._private_key

    @property
    def public_key(self):
        return self._public_key

    @property
    def key_length_bits(self) -> int:
        return self._private_key.size_in_bits()

    def __eq__(self, other):
        if not isinstance(other, KeyPair):
            return NotImplemented
        return self._private_key == other._private_key

    def __hash__(self):
        return hash((self._public_key.n, self._public_key.e))

    def __repr__(self):
        return "<KeyPair RSA %d bits>" % self.key_length_bits


def generate_keypair(key_length_bits: int = DEFAULT_KEY_LENGTH_BITS) -> KeyPair:
    """Generate a fresh RSA keypair, and check its consistency before returning it.

    :param key_length_bits: size of the modulus in bits
    :return: KeyPair instance"""
    return _do_generate_keypair(key_length_bits)


# Intermediate function to help monkey-patching in tests
def _do_generate_keypair(key_length_bits):

    if key_length_bits < MIN_KEY_LENGTH_BITS:
        raise KeyGenerationError(
            "The RSA key length must be superior or equal to %d bits, got %d" % (MIN_KEY_LENGTH_BITS, key_length_bits)
        )

    logger.debug("Generating a new RSA keypair of %d bits", key_length_bits)
    try:
        private_key = _crypto_backend.generate_rsa_private_key(key_length_bits)
        # Rebuilding the key from its raw components runs all consistency checks
        private_key = _crypto_backend.construct_rsa_private_key(
            private_key.n, private_key.e, private_key.d, private_key.p, private_key.q
        )
    except ValueError as exc:
        raise KeyGenerationError("Failed generating RSA keypair of %d bits (%s)" % (key_length_bits, exc)) from exc

    if private_key.size_in_bits() != key_length_bits:
        raise KeyGenerationError(
            "Generated RSA modulus has %d bits instead of %d" % (private_key.size_in_bits(), key_length_bits)
        )

    return KeyPair(private_key)


def _parse_pkcs1_private_key_der(der: bytes):
    try:
        components = _crypto_backend.decode_der_integer_sequence(der, nr_elements=_PKCS1_PRIVATE_KEY_SEQUENCE_LENGTH)
        version, modulus, public_exponent, private_exponent, prime1, prime2 = components[:6]
        if version != 0:
            raise ValueError("Unsupported PKCS#1 private key version %s" % version)
        return _crypto_backend.construct_rsa_private_key(modulus, public_exponent, private_exponent, prime1, prime2)
    except (ValueError, IndexError, TypeError) as exc:
        raise InvalidKeyEncodingError("Failed parsing PKCS#1 RSA private key (%s)" % exc) from exc


def load_keypair_from_pem(pem_data: AnyStr, passphrase: Optional[AnyStr] = None) -> KeyPair:
    """Load a keypair from the PEM armoring of a PKCS#1 RSA private key.

    :param pem_data: PEM text, as str or ascii bytes
    :param passphrase: needed only if the PEM block is legacy-encrypted

    :return: KeyPair instance"""
    if pem_data is None:
        raise MissingArgumentError("No PEM data provided for keypair loading")
    block = decode_pem_block(pem_data)
    der = decrypt_pem_block(block, passphrase=passphrase)
    private_key = _parse_pkcs1_private_key_der(der)
    return KeyPair(private_key)


def load_keypair_from_file(filepath: Union[str, Path], passphrase: Optional[AnyStr] = None) -> KeyPair:
    """Same as `load_keypair_from_pem()`, but reads PEM data from filesystem."""
    filepath = Path(filepath)
    try:
        pem_data = filepath.read_bytes()
    except FileNotFoundError as exc:
        raise KeyFileDoesNotExist("Key file %s does not exist" % filepath) from exc
    return load_keypair_from_pem(pem_data, passphrase=passphrase)


def get_public_key_pem(keypair: KeyPair) -> str:
    """Return the SubjectPublicKeyInfo DER of the public key, armored as PEM text."""
    der = _crypto_backend.export_rsa_public_key_to_spki_der(keypair.public_key)
    return encode_pem_block(der, PUBLIC_KEY_BLOCK_TYPE)


def get_private_key_pem(keypair: KeyPair, passphrase: Optional[AnyStr] = None) -> str:
    """Return the PKCS#1 DER of the private key, armored as "RSA PRIVATE KEY" PEM text.

    If a passphrase is provided, the PEM block is protected with legacy PEM encryption."""
    der = _crypto_backend.export_rsa_private_key_to_pkcs1_der(keypair.private_key)
    return encode_pem_block(der, PRIVATE_KEY_BLOCK_TYPE, passphrase=passphrase)
