import logging
import sys

import click  # See https://click.palletsprojects.com/en/8.x/
import click_log
from click import Command

from msgsealer import operations
from msgsealer.exceptions import (
    EncryptionError,
    FunctionalError,
    KeyFileWritingError,
    KeyGenerationError,
    KeyLoadingError,
    MessageEncodingError,
    MessageTooLongError,
    SerializationError,
)
from msgsealer.keystore import DEFAULT_KEY_FILENAME
from msgsealer.record import serialize_encrypted_record

# We setup the whole logging tree!
_root_logger = logging.getLogger()
click_log.basic_config(_root_logger)

logger = logging.getLogger(__name__)

# No help option, so that "-h" or "--help" are valid messages like any other text
CONTEXT_SETTINGS = dict(help_option_names=[])

# Most specific classes first, status 2 is reserved for click usage errors
ERROR_EXIT_STATUSES = [
    (KeyLoadingError, 3),
    (KeyGenerationError, 4),
    (MessageTooLongError, 5),
    (MessageEncodingError, 8),
    (EncryptionError, 6),
    (SerializationError, 7),
    (KeyFileWritingError, 9),
    (FunctionalError, 1),
]


def _get_exit_status_for_exception(exc):
    for exception_class, exit_status in ERROR_EXIT_STATUSES:
        if isinstance(exc, exception_class):
            return exit_status
    raise RuntimeError("No exit status for %r" % exc)  # pragma: no cover


class VerbatimArgumentsCommand(Command):
    """Command whose arguments are all positional, even when they start with dashes."""

    def parse_args(self, ctx, args):
        # An end-of-options marker is injected, so that a user-provided "--" is kept as a message
        return super().parse_args(ctx, ["--"] + list(args))


@click.command(cls=VerbatimArgumentsCommand, context_settings=CONTEXT_SETTINGS, options_metavar="")
@click.argument("message", required=True)
def msgsealer_cli(message):
    """Encrypt MESSAGE with the local RSA key, and print a JSON record with message, ciphertext and public key

    The private key is loaded from "private.pem" in the current directory, and generated there if needed.

    The command has no options: any single argument, even "--help" or "-5 degrees", is the message to encrypt.

    Beware, the "signature" field of the record contains the base64 CIPHERTEXT, not a signature.
    """
    try:
        record = operations.seal_message_with_keyfile(message, keyfile_path=DEFAULT_KEY_FILENAME)
        record_json = serialize_encrypted_record(record)
    except FunctionalError as exc:
        click.echo("Error: %s" % exc, err=True)
        sys.exit(_get_exit_status_for_exception(exc))

    click.echo(record_json)


def main(prog_name=None):
    """Launch message sealer CLI"""
    msgsealer_cli(prog_name=prog_name)


if __debug__:
    for k, v in globals().copy().items():
        if isinstance(v, Command):
            assert v.__doc__, "%s has no dosctring" % k
