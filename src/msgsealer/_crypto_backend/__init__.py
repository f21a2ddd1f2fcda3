# All calls to the underlying crypto library go through this package

from .pycryptodome import build_rsa_oaep_cipher
from .pycryptodome import (
    generate_rsa_private_key,
    construct_rsa_private_key,
    rsa_key_class_fetcher,
    export_rsa_private_key_to_pkcs1_der,
    export_rsa_public_key_to_spki_der,
    decode_der_integer_sequence,
)
from .pycryptodome import encode_pem, decode_pem
