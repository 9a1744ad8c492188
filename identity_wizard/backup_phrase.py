# Copyright (C) 2026 The identity-wizard developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
import asyncio
import functools
import unicodedata
from typing import NamedTuple, Optional, Union, TYPE_CHECKING

from mnemonic import Mnemonic

from . import crypto
from .i18n import _
from .logging import Logger
from .util import InvalidPassword, to_bytes, to_string

if TYPE_CHECKING:
    from .simple_config import SimpleConfig


VALID_WORD_COUNTS = (12, 15, 18, 21, 24)
# entropy bits per word count (BIP39)
STRENGTH_BY_WORD_COUNT = {12: 128, 15: 160, 18: 192, 21: 224, 24: 256}


class PhraseValidation(NamedTuple):
    is_valid: bool
    reason: Optional[str] = None


def normalize_phrase(phrase: str) -> str:
    # normalize
    phrase = unicodedata.normalize('NFKD', phrase)
    # lower
    phrase = phrase.lower()
    # normalize whitespaces
    return ' '.join(phrase.split())


def is_matching_phrase(*, phrase: str, phrase_again: str) -> bool:
    """Compare two backup phrases for equality, as used on the "confirm key" page."""
    return normalize_phrase(phrase) == normalize_phrase(phrase_again)


class BackupPhraseCodec(Logger):
    """Validates identity backup phrases (BIP39 mnemonics) and protects them
    with a password.

    The envelope format lives in crypto.py; this class only adds the text
    handling around it. Decryption runs in the default executor so that key
    stretching does not block the event loop.
    """

    def __init__(self, *, language: str = 'english', kdf_rounds: int = crypto.PBKDF2_ROUNDS):
        Logger.__init__(self)
        self.language = language
        self.kdf_rounds = kdf_rounds
        self._mnemonic = Mnemonic(language)
        self._wordset = frozenset(self._mnemonic.wordlist)

    @classmethod
    def from_config(cls, config: 'SimpleConfig') -> 'BackupPhraseCodec':
        return cls(language=config.BACKUP_PHRASE_LANGUAGE)

    def validate(self, phrase: Optional[str]) -> PhraseValidation:
        if not phrase or not phrase.strip():
            return PhraseValidation(False, _('The identity key is empty.'))
        phrase = normalize_phrase(phrase)
        words = phrase.split(' ')
        if len(words) not in VALID_WORD_COUNTS:
            return PhraseValidation(False, _('An identity key has 12, 15, 18, 21 or 24 words, not {}.').format(len(words)))
        unknown = [w for w in words if w not in self._wordset]
        if unknown:
            return PhraseValidation(False, _('Unknown words: {}').format(', '.join(unknown)))
        if not self._mnemonic.check(phrase):
            return PhraseValidation(False, _('The identity key checksum is invalid.'))
        return PhraseValidation(True)

    def is_valid(self, phrase: Optional[str]) -> bool:
        return self.validate(phrase).is_valid

    def generate(self, *, strength: int = 128) -> str:
        phrase = self._mnemonic.generate(strength=strength)
        self.logger.info(f"generated identity key. {len(phrase.split())} words")
        return phrase

    def encrypt(self, plaintext: bytes, password: str) -> bytes:
        return crypto.encrypt_backup(plaintext, password, rounds=self.kdf_rounds)

    def encrypt_to_hex(self, phrase: str, password: str) -> str:
        return self.encrypt(to_bytes(phrase, 'utf8'), password).hex()

    async def decrypt(self, ciphertext: bytes, password: Optional[str]) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(crypto.decrypt_backup, ciphertext, password, rounds=self.kdf_rounds))

    async def decrypt_hex(self, hex_ciphertext: Optional[str], password: Optional[str]) -> str:
        try:
            ciphertext = bytes.fromhex(hex_ciphertext)
        except (TypeError, ValueError) as e:
            raise InvalidPassword() from e
        plaintext = await self.decrypt(ciphertext, password)
        try:
            return to_string(plaintext, 'utf8')
        except UnicodeDecodeError as e:
            raise InvalidPassword() from e


_default_codec = None  # type: Optional[BackupPhraseCodec]


def get_default_codec() -> BackupPhraseCodec:
    global _default_codec
    if _default_codec is None:
        _default_codec = BackupPhraseCodec()
    return _default_codec


def validate_backup_phrase(phrase: Optional[str]) -> PhraseValidation:
    return get_default_codec().validate(phrase)


def decrypt(ciphertext: Union[bytes, bytearray], password: Optional[str]):
    """Returns an awaitable that resolves to the plaintext bytes."""
    return get_default_codec().decrypt(bytes(ciphertext), password)
