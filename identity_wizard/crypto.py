# Copyright (C) 2026 The identity-wizard developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
"""Password envelope for the encrypted backup phrase.

    version (1) | salt (16) | iv (16) | AES-256-CBC ciphertext | HMAC-SHA256 (32)

Both keys come from PBKDF2-HMAC-SHA512 over the password and salt. The MAC
covers everything before it and is checked first, so a wrong password is
caught before any decryption happens.

AES itself comes from whichever library is installed, tried in the order
pycryptodomex, cryptography, pyaes. The HAS_* flags say which ones loaded.
"""
import hashlib
import hmac
import os
import re
import sys
from typing import Tuple, Union

from .logging import get_logger
from .util import InvalidPassword, to_bytes
from .version import BACKUP_ENVELOPE_VERSION

_logger = get_logger(__name__)


def _at_least(version: str, minimum: Tuple[int, ...]) -> bool:
    found = tuple(int(n) for n in re.findall(r'\d+', version)[:len(minimum)])
    if found < minimum:
        _logger.warning(f"AES library version {version} is older than {minimum}, not using it")
        return False
    return True


HAS_CRYPTODOME = False
try:
    import Cryptodome
    from Cryptodome.Cipher import AES as CD_AES
except ImportError:
    pass
else:
    HAS_CRYPTODOME = _at_least(Cryptodome.__version__, (3, 7))

HAS_CRYPTOGRAPHY = False
try:
    import cryptography
    from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
except ImportError:
    pass
else:
    HAS_CRYPTOGRAPHY = _at_least(cryptography.__version__, (3, 1))

HAS_PYAES = False
try:
    import pyaes
except ImportError:
    pass
else:
    HAS_PYAES = True

if not (HAS_CRYPTODOME or HAS_CRYPTOGRAPHY):
    sys.exit("identity-wizard needs 'cryptography' or 'pycryptodomex' installed")


PBKDF2_ROUNDS = 100_000
SALT_LEN = 16
IV_LEN = 16
MAC_LEN = 32
BLOCK_LEN = 16
_HEADER_LEN = 1 + SALT_LEN + IV_LEN


class InvalidPadding(Exception):
    pass


class CiphertextFormatError(Exception):
    pass


def pkcs7_pad(data: bytes) -> bytes:
    n = BLOCK_LEN - len(data) % BLOCK_LEN
    return bytes(data) + bytes([n]) * n


def pkcs7_unpad(data: bytes) -> bytes:
    if not data or len(data) % BLOCK_LEN:
        raise InvalidPadding("padded data has a bad length")
    n = data[-1]
    if not 1 <= n <= BLOCK_LEN or data[-n:] != bytes([n]) * n:
        raise InvalidPadding("bad padding bytes")
    return bytes(data[:-n])


def aes_cbc(key: bytes, iv: bytes, data: bytes, *, encrypt: bool) -> bytes:
    """Raw AES-CBC over whole blocks, with the first backend available."""
    if HAS_CRYPTODOME:
        cipher = CD_AES.new(key, CD_AES.MODE_CBC, iv)
        return cipher.encrypt(data) if encrypt else cipher.decrypt(data)
    if HAS_CRYPTOGRAPHY:
        cipher = Cipher(algorithms.AES(key), modes.CBC(iv))
        op = cipher.encryptor() if encrypt else cipher.decryptor()
        return op.update(data) + op.finalize()
    if HAS_PYAES:
        mode = pyaes.AESModeOfOperationCBC(key, iv=iv)
        stream = (pyaes.Encrypter if encrypt else pyaes.Decrypter)(mode, padding=pyaes.PADDING_NONE)
        return stream.feed(data) + stream.feed()
    raise Exception("no AES backend available")


def derive_backup_keys(password: Union[bytes, str], salt: bytes, *,
                       rounds: int = PBKDF2_ROUNDS) -> Tuple[bytes, bytes]:
    """Returns (encryption key, mac key) derived from the password."""
    keys = hashlib.pbkdf2_hmac('sha512', to_bytes(password), salt, iterations=rounds, dklen=64)
    return keys[:32], keys[32:]


def _mac(key: bytes, data: bytes) -> bytes:
    return hmac.new(key, data, hashlib.sha256).digest()


def encrypt_backup(plaintext: bytes, password: Union[bytes, str], *,
                   rounds: int = PBKDF2_ROUNDS) -> bytes:
    if not isinstance(plaintext, (bytes, bytearray)):
        raise TypeError("plaintext must be bytes")
    if password is None:
        raise InvalidPassword()
    salt, iv = os.urandom(SALT_LEN), os.urandom(IV_LEN)
    enc_key, mac_key = derive_backup_keys(password, salt, rounds=rounds)
    body = bytes([BACKUP_ENVELOPE_VERSION]) + salt + iv + aes_cbc(enc_key, iv, pkcs7_pad(plaintext), encrypt=True)
    return body + _mac(mac_key, body)


def decrypt_backup(envelope: bytes, password: Union[bytes, str, None], *,
                   rounds: int = PBKDF2_ROUNDS) -> bytes:
    """Opens an envelope made by encrypt_backup.

    Every failure surfaces as InvalidPassword: a wrong password and a damaged
    envelope look the same to the caller.
    """
    if password is None:
        raise InvalidPassword()
    try:
        salt, iv, ciphertext, mac = _split_envelope(envelope)
    except CiphertextFormatError as e:
        raise InvalidPassword() from e
    enc_key, mac_key = derive_backup_keys(password, salt, rounds=rounds)
    if not hmac.compare_digest(mac, _mac(mac_key, bytes(envelope[:-MAC_LEN]))):
        raise InvalidPassword()
    try:
        return pkcs7_unpad(aes_cbc(enc_key, iv, ciphertext, encrypt=False))
    except Exception as e:
        raise InvalidPassword() from e


def _split_envelope(envelope) -> Tuple[bytes, bytes, bytes, bytes]:
    """Returns (salt, iv, ciphertext, mac)."""
    if not isinstance(envelope, (bytes, bytearray)):
        raise CiphertextFormatError("envelope is not bytes")
    envelope = bytes(envelope)
    if len(envelope) < _HEADER_LEN + BLOCK_LEN + MAC_LEN:
        raise CiphertextFormatError("envelope too short")
    if envelope[0] != BACKUP_ENVELOPE_VERSION:
        raise CiphertextFormatError(f"unknown envelope version {envelope[0]}")
    ciphertext = envelope[_HEADER_LEN:-MAC_LEN]
    if len(ciphertext) % BLOCK_LEN:
        raise CiphertextFormatError("ciphertext is not a whole number of blocks")
    return envelope[1:1 + SALT_LEN], envelope[1 + SALT_LEN:_HEADER_LEN], ciphertext, envelope[-MAC_LEN:]
