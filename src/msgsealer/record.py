import logging
from typing import NamedTuple

from schema import And, Regex, Schema, SchemaError

from msgsealer.exceptions import SchemaValidationError, SerializationError
from msgsealer.pem import PUBLIC_KEY_BLOCK_TYPE
from msgsealer.utilities import dump_to_json_str, load_from_json_str, wrap_base64

logger = logging.getLogger(__name__)

_BASE64_WRAPPED_REGEX = r"^[A-Za-z0-9+/=\n]*$"

# The "signature" field actually holds the CIPHERTEXT, its name is kept for compatibility with consumers
ENCRYPTED_RECORD_SCHEMA = Schema(
    {
        "message": str,
        "signature": And(str, Regex(_BASE64_WRAPPED_REGEX)),
        "pubkey": And(str, lambda s: s.startswith("-----BEGIN %s-----" % PUBLIC_KEY_BLOCK_TYPE)),
    }
)


class EncryptedRecord(NamedTuple):
    """Self-describing result of a message encryption.

    Beware, `message` is the exact PLAINTEXT, and `signature` is the wrapped base64 ciphertext."""

    message: str
    signature: str
    pubkey: str

    def as_dict(self) -> dict:
        return dict(message=self.message, signature=self.signature, pubkey=self.pubkey)  # Field order matters


def check_encrypted_record_sanity(record_tree: dict):
    """Validate the fields of a record, as a dict. Raises SchemaValidationError on failure."""
    try:
        ENCRYPTED_RECORD_SCHEMA.validate(record_tree)
    except SchemaError as exc:
        raise SchemaValidationError("Error validating encrypted record: {}".format(exc)) from exc


def assemble_encrypted_record(message: str, ciphertext: bytes, public_key_pem: str) -> EncryptedRecord:
    """Build a record from the original message, the raw ciphertext and the PEM of the encryption key."""
    return EncryptedRecord(message=message, signature=wrap_base64(ciphertext), pubkey=public_key_pem)


def serialize_encrypted_record(record: EncryptedRecord) -> str:
    """Dump a record as a single-line compact JSON object."""
    record_tree = record.as_dict()
    try:
        check_encrypted_record_sanity(record_tree)
    except SchemaValidationError as exc:
        raise SerializationError("Refusing to serialize invalid record (%s)" % exc) from exc
    return dump_to_json_str(record_tree, sort_keys=False, ensure_ascii=False, separators=(",", ":"))


def load_encrypted_record(json_str: str) -> EncryptedRecord:
    """Parse and validate a record previously dumped by `serialize_encrypted_record()`."""
    record_tree = load_from_json_str(json_str)
    check_encrypted_record_sanity(record_tree)
    return EncryptedRecord(**record_tree)
