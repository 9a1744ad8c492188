# Copyright (C) 2026 The identity-wizard developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
"""Contracts of the account layer the wizard consumes.

The wizard never owns account state. It reads an AccountState snapshot from
an AccountStore, gets told about changes through the 'account_updated'
event, and asks a WalletBackend to do the actual work. LocalWallet is an
in-process backend used by the console front-end and the tests.
"""
import asyncio
import concurrent.futures
from abc import ABC, abstractmethod
from typing import Optional, List, Tuple, TYPE_CHECKING

import attr

from .logging import Logger
from .util import trigger_callback, get_asyncio_loop, log_exceptions

if TYPE_CHECKING:
    from .backup_phrase import BackupPhraseCodec


@attr.s(frozen=True, kw_only=True)
class AccountState:
    account_created = attr.ib(type=bool, default=False)
    storage_connected = attr.ib(type=bool, default=False)
    core_connected = attr.ib(type=bool, default=False)
    prompted_for_email = attr.ib(type=bool, default=False)
    encrypted_backup_phrase = attr.ib(type=Optional[str], default=None, repr=False)  # hex

    def is_fully_provisioned(self) -> bool:
        return (self.account_created and self.storage_connected
                and self.core_connected and self.prompted_for_email)


class AccountStore(Logger):
    """Read model of the account layer. Every change triggers 'account_updated'
    with (store, old_state, new_state).
    """

    def __init__(self, state: AccountState = None):
        Logger.__init__(self)
        self._state = state if state is not None else AccountState()

    @property
    def state(self) -> AccountState:
        return self._state

    def update(self, **changes) -> AccountState:
        old = self._state
        new = attr.evolve(old, **changes)
        if new == old:
            return new
        self._state = new
        self.logger.debug(f"account updated: {new!r}")
        trigger_callback('account_updated', self, old, new)
        return new


class WalletBackend(ABC):
    """External wallet capability. Calls are dispatched and return immediately;
    their outcome is observed through the AccountStore.
    """

    @abstractmethod
    def initialize_wallet(self, password: str, backup_phrase: Optional[str]) -> None:
        """Create a keychain (backup_phrase is None) or restore it from backup_phrase."""
        pass

    @abstractmethod
    def email_keychain_backup(self, email: str, encrypted_backup_phrase: Optional[str]) -> None:
        pass

    @abstractmethod
    def skip_email_backup(self) -> None:
        pass


class LocalWallet(WalletBackend, Logger):

    LOGGING_SHORTCUT = 'W'

    def __init__(self, store: AccountStore, codec: 'BackupPhraseCodec', *, strength: int = 128):
        Logger.__init__(self)
        self.store = store
        self.codec = codec
        self.strength = strength
        self.emailed_backups = []  # type: List[Tuple[str, str]]
        self._running_futs = set()

    def initialize_wallet(self, password, backup_phrase):
        return self._spawn(self._initialize_wallet(password, backup_phrase))

    @log_exceptions
    async def _initialize_wallet(self, password: str, backup_phrase: Optional[str]) -> None:
        if backup_phrase is None:
            self.logger.info("creating new identity keychain")
            backup_phrase = self.codec.generate(strength=self.strength)
        else:
            self.logger.info("restoring identity keychain from backup phrase")
        loop = asyncio.get_running_loop()
        encrypted = await loop.run_in_executor(None, self.codec.encrypt_to_hex, backup_phrase, password)
        self.store.update(
            encrypted_backup_phrase=encrypted,
            account_created=True,
            storage_connected=True,
        )

    def email_keychain_backup(self, email, encrypted_backup_phrase):
        # delivery is up to the hosting application; we only record the request
        self.logger.info("keychain backup requested by email")
        self.emailed_backups.append((email, encrypted_backup_phrase))
        self.store.update(prompted_for_email=True)

    def skip_email_backup(self):
        self.logger.info("email backup skipped")
        self.store.update(prompted_for_email=True)

    async def wait_until_idle(self) -> None:
        while self._running_futs:
            futs = [asyncio.wrap_future(fut) for fut in list(self._running_futs)]
            await asyncio.wait(futs)

    def _spawn(self, coro) -> concurrent.futures.Future:
        fut = asyncio.run_coroutine_threadsafe(coro, get_asyncio_loop())
        self._running_futs.add(fut)
        def on_done(fut_: concurrent.futures.Future):
            self._running_futs.discard(fut_)
            if fut_.cancelled():
                self.logger.debug("wallet task cancelled")
        fut.add_done_callback(on_done)
        return fut
