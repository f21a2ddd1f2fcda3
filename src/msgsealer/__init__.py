from msgsealer.keygen import (
    KeyPair,
    generate_keypair,
    load_keypair_from_pem,
    load_keypair_from_file,
    get_public_key_pem,
    get_private_key_pem,
)
from msgsealer.operations import seal_message, seal_message_with_keyfile
from msgsealer.record import EncryptedRecord, serialize_encrypted_record
