"""Textbook RSA with PKCS#1 v1.5 padding, built on Python integers.

Provides RSA key generation from a pluggable entropy source, PKCS#1 v1.5 (type 2) padded encryption and decryption
of text, CRT accelerated private operations and key import/export as compact JSON/hex or PEM.

Typical usage example:

    pk = RSAPrivKey.generate(3072)
    c = pk.pub.encrypt("Hi there!")
    r = pk.decrypt(c)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging

from rsalite.entropy import EntropySource
from rsalite.entropy import PhraseEntropy
from rsalite.entropy import SystemEntropy
from rsalite.errors import BadPadding
from rsalite.errors import GenerationExhausted
from rsalite.errors import InvalidKeyFormat
from rsalite.errors import MessageTooLong
from rsalite.errors import RSAError
from rsalite.keygen import check_prime
from rsalite.keygen import generate_key_pair
from rsalite.keygen import generate_primes
from rsalite.keygen import get_pre_primes
from rsalite.rsa import load_key
from rsalite.rsa import RSAPrivKey
from rsalite.rsa import RSAPubKey

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    "RSAPrivKey",
    "RSAPubKey",
    "load_key",
    "EntropySource",
    "SystemEntropy",
    "PhraseEntropy",
    "RSAError",
    "InvalidKeyFormat",
    "MessageTooLong",
    "BadPadding",
    "GenerationExhausted",
    "get_pre_primes",
    "check_prime",
    "generate_primes",
    "generate_key_pair",
]
