class FunctionalError(Exception):
    """Base class for all 'normal' errors of the API"""

    pass


# ---


class ExistenceError(FunctionalError):
    pass


class KeyFileDoesNotExist(ExistenceError):
    pass


class KeyFileWritingError(FunctionalError):
    pass  # Key file could not be created or overwritten


# ---


class CryptographyError(FunctionalError):
    pass


class KeyLoadingError(CryptographyError):
    pass  # Base for all errors occurring when turning PEM data into a keypair


class MalformedPemError(KeyLoadingError):
    pass  # No valid BEGIN/END block could be found


class PemDecryptionError(KeyLoadingError):
    pass  # E.g. missing or wrong passphrase for a legacy-encrypted PEM block


class InvalidKeyEncodingError(KeyLoadingError):
    pass  # DER payload is not a consistent PKCS#1 RSA private key


class KeyGenerationError(CryptographyError):
    pass


class EncryptionError(CryptographyError):
    pass


class MessageTooLongError(EncryptionError):
    pass  # Rejected before any encryption attempt


class MessageEncodingError(EncryptionError):
    pass  # Message is not encodable as utf8, e.g. undecodable bytes in command line arguments


class DecryptionError(CryptographyError):
    pass


# ---


class ValidationError(FunctionalError):
    pass  # Base for all errors related to corrupted data and invalid inputs


class SchemaValidationError(ValidationError):
    pass  # When data doesn't respect json format, or an additional python-schema


class SerializationError(ValidationError):
    pass


class MissingArgumentError(ValidationError):
    pass
