import binascii
import logging
import unicodedata
from base64 import b64decode, b64encode
from json import JSONDecodeError
from typing import AnyStr, Optional

from bson.binary import UuidRepresentation
from bson.json_util import dumps, loads, JSONOptions, JSONMode
from decorator import decorator

from msgsealer.exceptions import SchemaValidationError

logger = logging.getLogger(__name__)

UTF8_ENCODING = "utf8"

#: Column width of the base64 text emitted for ciphertexts (MIME-like, not PEM-like)
BASE64_LINE_LENGTH = 76

MSGSEALER_JSON_OPTIONS = JSONOptions(
    json_mode=JSONMode.CANONICAL, uuid_representation=UuidRepresentation.STANDARD  # Preserve all type information
)


### Private utilities ###


@decorator
def synchronized(func, self, *args, **kwargs):
    """
    Wraps the function call with a mutex locking on the expected "self._lock" mutex.
    """
    with self._lock:
        return func(self, *args, **kwargs)


def encode_passphrase(passphrase: Optional[AnyStr]) -> Optional[bytes]:
    """Strip and NFKC-normalize a string passphrase, then encode it as utf8 bytes.

    Bytes passphrases (and None) are returned untouched."""
    if isinstance(passphrase, str):
        passphrase = unicodedata.normalize("NFKC", passphrase.strip()).encode(UTF8_ENCODING)
    return passphrase


### Public utilities ###


def wrap_base64(data: bytes, line_length: int = BASE64_LINE_LENGTH) -> str:
    """Encode `data` as padded standard base64, and insert a newline every `line_length` characters.

    The last line never gets a trailing newline, and empty data gives an empty string.

    :param data: bytestring to encode
    :param line_length: count of base64 characters per line
    :return: wrapped base64 text"""
    assert line_length > 0, line_length
    encoded = b64encode(data).decode("ascii")
    lines = [encoded[i : i + line_length] for i in range(0, len(encoded), line_length)]
    return "\n".join(lines)


def unwrap_base64(text: str) -> bytes:
    """Reverse `wrap_base64()`, ignoring inserted line breaks.

    Raises ValueError on invalid base64 content."""
    joined = "".join(text.split())
    try:
        return b64decode(joined, validate=True)
    except binascii.Error as exc:
        raise ValueError("Invalid base64 text (%s)" % exc) from exc


def dump_to_json_str(data, **extra_options):
    """
    Dump a data tree to a json representation as string.
    Supports advanced types like bytes, uuids, dates...
    """
    sort_keys = extra_options.pop("sort_keys", True)
    json_str = dumps(data, sort_keys=sort_keys, json_options=MSGSEALER_JSON_OPTIONS, **extra_options)
    return json_str


def load_from_json_str(data, **extra_options):
    """
    Load a data tree from a json representation as string.
    Supports advanced types like bytes, uuids, dates...

    Raises SchemaValidationError on loading error
    """
    assert isinstance(data, str), data
    try:
        return loads(data, json_options=MSGSEALER_JSON_OPTIONS, **extra_options)
    except JSONDecodeError as exc:
        raise SchemaValidationError("Invalid JSON string: %r" % exc) from exc

