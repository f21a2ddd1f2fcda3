import binascii
import logging
import re
from base64 import b64decode
from typing import AnyStr, NamedTuple, Optional

from msgsealer import _crypto_backend
from msgsealer.exceptions import MalformedPemError, PemDecryptionError
from msgsealer.utilities import encode_passphrase

logger = logging.getLogger(__name__)

PRIVATE_KEY_BLOCK_TYPE = "RSA PRIVATE KEY"
PUBLIC_KEY_BLOCK_TYPE = "RSA PUBLIC KEY"

_PEM_BLOCK_REGEX = re.compile(
    r"-----BEGIN (?P<block_type>[^\r\n-]*)-----[ \t]*\r?\n(?P<content>.*?)-----END (?P=block_type)-----", re.DOTALL
)
_PEM_HEADER_REGEX = re.compile(r"^(?P<name>[^:\s]+):\s*(?P<value>.*)$")


class PemBlock(NamedTuple):
    """A single decoded PEM block.

    `body` holds the raw bytes of the base64 payload, which are still encrypted
    if the block carries legacy encryption headers."""

    block_type: str
    headers: dict
    body: bytes
    pem_text: str  # Exact armored text of the block, needed for legacy decryption


def decode_pem_block(pem_data: AnyStr) -> PemBlock:
    """Parse the first PEM block found in `pem_data`.

    Text before the BEGIN line is ignored, as well as anything after the END line.

    :param pem_data: PEM text, as str or ascii bytes
    :return: PemBlock instance"""
    if isinstance(pem_data, bytes):
        pem_data = pem_data.decode("ascii", errors="replace")

    match = _PEM_BLOCK_REGEX.search(pem_data)
    if not match:
        raise MalformedPemError("No PEM block delimiters found in data")

    lines = [line.strip() for line in match.group("content").splitlines()]

    headers = {}
    if lines and _PEM_HEADER_REGEX.match(lines[0]):
        while lines and lines[0]:
            header_match = _PEM_HEADER_REGEX.match(lines.pop(0))
            if not header_match:
                raise MalformedPemError("Invalid header line in PEM block")
            headers[header_match.group("name")] = header_match.group("value").strip()

    try:
        body = b64decode("".join(lines), validate=True)
    except binascii.Error as exc:
        raise MalformedPemError("Invalid base64 payload in PEM block (%s)" % exc) from exc

    return PemBlock(block_type=match.group("block_type"), headers=headers, body=body, pem_text=match.group(0))


def is_pem_block_encrypted(block: PemBlock) -> bool:
    """Return True if the block carries legacy "Proc-Type: 4,ENCRYPTED" headers."""
    proc_type = block.headers.get("Proc-Type", "")
    return proc_type.replace(" ", "") == "4,ENCRYPTED"


def decrypt_pem_block(block: PemBlock, passphrase: Optional[AnyStr] = None) -> bytes:
    """Return the DER payload of a PEM block, reversing legacy encryption if needed.

    An unencrypted block is returned as-is, whatever the passphrase. An encrypted block
    requires a non-empty passphrase.

    :param block: PemBlock returned by `decode_pem_block()`
    :param passphrase: str or bytes, used only for encrypted blocks
    :return: DER bytestring"""
    if not is_pem_block_encrypted(block):
        return block.body

    passphrase = encode_passphrase(passphrase)
    if not passphrase:
        raise PemDecryptionError("PEM block %r is encrypted, but no passphrase was provided" % block.block_type)

    try:
        data, _marker, _was_encrypted = _crypto_backend.decode_pem(block.pem_text, passphrase=passphrase)
    except (ValueError, IndexError, TypeError) as exc:
        raise PemDecryptionError("Failed decrypting PEM block %r (%s)" % (block.block_type, exc)) from exc
    return data


def encode_pem_block(der: bytes, block_type: str, passphrase: Optional[AnyStr] = None) -> str:
    """Armor DER bytes between BEGIN/END lines, with 64-column body lines and a final newline.

    If a passphrase is provided, the body is protected with legacy PEM encryption."""
    passphrase = encode_passphrase(passphrase)
    pem_text = _crypto_backend.encode_pem(der, block_type, passphrase=passphrase or None)
    return pem_text + "\n"
