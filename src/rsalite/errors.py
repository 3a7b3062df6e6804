"""Failure kinds raised by the RSA engine.

Every kind is recoverable by the caller. Each one also derives from the builtin exception callers would already be
catching for that situation, so ``except ValueError`` around a key import keeps working.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class RSAError(Exception):
    """Base class for all rsalite failures."""


class InvalidKeyFormat(RSAError, ValueError):
    """Key material is malformed, incomplete or lacks the components an operation needs."""


class MessageTooLong(RSAError, ValueError):
    """The encoded plaintext does not fit the padding capacity of the modulus."""


class BadPadding(RSAError, RuntimeError):
    """The decrypted block is not a valid PKCS#1 v1.5 type 2 encoding.

    Corrupted ciphertext, a wrong key and malformed input are deliberately indistinguishable.
    """

    def __init__(self, message: str = "Decryption error.") -> None:
        super().__init__(message)


class GenerationExhausted(RSAError, RuntimeError):
    """Key generation ran past its attempt budget without producing a key."""
