# Copyright (C) 2026 The identity-wizard developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
from typing import NamedTuple, Optional, TYPE_CHECKING

from .alert import AlertSeverity
from .backup_phrase import normalize_phrase
from .i18n import _
from .logging import Logger
from .util import constant_time_compare

if TYPE_CHECKING:
    from .account import WalletBackend
    from .backup_phrase import BackupPhraseCodec
    from .wizard import WizardSession


MSG_PASSWORD_MISMATCH = 'The password confirmation does not match the password you entered.'
MSG_INVALID_IDENTITY_KEY = 'The identity key you entered is not valid.'


class ProvisioningResult(NamedTuple):
    ok: bool
    error: Optional[str] = None


class AccountProvisioner(Logger):
    """Validates what the user typed and hands it to the wallet backend.

    Validation failures become a single 'danger' alert on the session and
    nothing reaches the backend. On success the secrets are kept in the
    session and initialize_wallet is dispatched; its completion shows up
    later as an account store update, not as a return value here.
    """

    LOGGING_SHORTCUT = 'P'

    def __init__(self, session: 'WizardSession', codec: 'BackupPhraseCodec', backend: 'WalletBackend'):
        Logger.__init__(self)
        self.session = session
        self.codec = codec
        self.backend = backend

    def _fail(self, message: str) -> ProvisioningResult:
        self.session.alerts.set_alert(AlertSeverity.DANGER, message)
        return ProvisioningResult(False, message)

    def _already_provisioning(self, action: str) -> bool:
        # one password per session; it is wiped when the wizard starts over
        if self.session.password.is_set():
            self.logger.warning(f'{action}: account already submitted in this session, ignoring')
            return True
        return False

    def create_account(self, password: str, password_confirmation: str) -> ProvisioningResult:
        self.logger.debug('create_account')
        if self._already_provisioning('create_account'):
            return ProvisioningResult(False)
        if not _passwords_match(password, password_confirmation):
            self.logger.error('create_account: password and confirmation do not match')
            return self._fail(_(MSG_PASSWORD_MISMATCH))
        self.session.password.set(password)
        self.logger.info('initializing account...')
        self.backend.initialize_wallet(password, None)
        return ProvisioningResult(True)

    def restore_account(self, backup_phrase: str, password: str, password_confirmation: str) -> ProvisioningResult:
        self.logger.debug('restore_account')
        if self._already_provisioning('restore_account'):
            return ProvisioningResult(False)
        validation = self.codec.validate(backup_phrase)
        if not validation.is_valid:
            self.logger.error(f'restore_account: invalid backup phrase entered: {validation.reason}')
            return self._fail(_(MSG_INVALID_IDENTITY_KEY))
        if not _passwords_match(password, password_confirmation):
            self.logger.error('restore_account: password and confirmation do not match')
            return self._fail(_(MSG_PASSWORD_MISMATCH))
        backup_phrase = normalize_phrase(backup_phrase)
        self.session.backup_phrase.set(backup_phrase)
        self.session.password.set(password)
        self.logger.info('restoring account...')
        self.backend.initialize_wallet(password, backup_phrase)
        return ProvisioningResult(True)


def _passwords_match(password: Optional[str], password_confirmation: Optional[str]) -> bool:
    if password is None or password_confirmation is None:
        return False
    return constant_time_compare(password, password_confirmation)
