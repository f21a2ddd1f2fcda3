"""
import Crypto.Hash.SHA256
from Crypto.Cipher import PKCS1_OAEP
from Crypto.IO import PEM
from Crypto.PublicKey import RSA
from Crypto.Util.asn1 import DerSequence
import Crypto.Random
"""


# Utilities #


def get_random_bytes(nbytes):
    import Crypto.Random

    return Crypto.Random.get_random_bytes(nbytes)


# RSA OAEP CIPHER #


def build_rsa_oaep_cipher(key):
    # Returned object has encrypt() and decrypt() methods
    import Crypto.Hash.SHA256
    from Crypto.Cipher import PKCS1_OAEP

    rsa_oaep_hasher = Crypto.Hash.SHA256  # Also used by the default MGF1
    return PKCS1_OAEP.new(key=key, hashAlgo=rsa_oaep_hasher, label=b"", randfunc=get_random_bytes)


# RSA KEY GENERATION, AND IMPORT/EXPORT #


def rsa_key_class_fetcher():
    from Crypto.PublicKey import RSA

    return RSA.RsaKey


def generate_rsa_private_key(key_length_bits):
    from Crypto.PublicKey import RSA

    return RSA.generate(key_length_bits)


def construct_rsa_private_key(modulus, public_exponent, private_exponent, prime1, prime2):
    from Crypto.PublicKey import RSA

    # Consistency checks (primality, modulus, exponents) raise ValueError
    return RSA.construct((modulus, public_exponent, private_exponent, prime1, prime2), consistency_check=True)


def export_rsa_private_key_to_pkcs1_der(private_key):
    return private_key.export_key(format="DER", pkcs=1)


def export_rsa_public_key_to_spki_der(public_key):
    return public_key.export_key(format="DER")


def decode_der_integer_sequence(der, nr_elements):
    from Crypto.Util.asn1 import DerSequence

    sequence = DerSequence().decode(der, nr_elements=nr_elements, only_ints_expected=True)
    return sequence[:]


# LEGACY PEM ARMORING #


def encode_pem(data, marker, passphrase=None):
    from Crypto.IO import PEM

    return PEM.encode(data, marker, passphrase=passphrase, randfunc=get_random_bytes)


def decode_pem(pem_data, passphrase=None):
    from Crypto.IO import PEM

    # Returns (data, marker, was_encrypted)
    return PEM.decode(pem_data, passphrase=passphrase)
