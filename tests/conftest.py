import functools
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True, scope="session")
def monkeypatch_generate_keypair_for_tests():
    """
    Generation of RSA keys can be extremely time-consuming, so we CACHE and
    reuse the same keys for most tests !
    """

    import msgsealer.keygen

    original_generator = msgsealer.keygen._do_generate_keypair
    msgsealer.keygen.__original_do_generate_keypair = original_generator
    cached_generator = functools.lru_cache(maxsize=None)(original_generator)

    patcher = patch("msgsealer.keygen._do_generate_keypair", cached_generator)
    msgsealer.keygen.__original_do_generate_keypair_patcher = patcher  # To use stop()/start() in tests

    patcher.start()  # DO NOT use "with" statement here, else start/stop don't work anymore
    try:
        yield
    finally:  # Just for safety
        patcher.stop()


@pytest.fixture
def keypair():
    from msgsealer.keygen import generate_keypair

    return generate_keypair()
