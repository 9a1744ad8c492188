# Copyright (C) 2026 The identity-wizard developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
import enum
from typing import NamedTuple, Optional, Dict, Any, Union, TYPE_CHECKING

from .account import AccountState
from .alert import Alert, AlertChannel, AlertSeverity
from .backup_phrase import BackupPhraseCodec, get_default_codec, is_matching_phrase
from .i18n import _
from .logging import Logger
from .provisioner import AccountProvisioner, ProvisioningResult
from .util import EventListener, event_listener, is_valid_email

if TYPE_CHECKING:
    from .account import AccountStore, WalletBackend
    from .simple_config import SimpleConfig


class Page(enum.IntEnum):
    LANDING = 0
    CHOOSE_PATH = 1
    DATA_CONTROL = 2
    ENTER_PASSWORD = 3
    CREATE_IDENTITY = 4
    WRITE_DOWN_KEY = 5
    CONFIRM_KEY = 6
    ENTER_EMAIL = 7


FIRST_PAGE = Page.LANDING
LAST_PAGE = Page.ENTER_EMAIL


class PathChoice(enum.Enum):
    CREATE = 'create'
    RESTORE = 'restore'


class SessionSecret:
    """Holds one secret for the lifetime of a wizard session.
    It is never printed, copied or serialized, and wipe() forgets it.
    """

    __slots__ = ('_name', '_value')

    def __init__(self, name: str):
        self._name = name
        self._value = None  # type: Optional[str]

    def set(self, value: str) -> None:
        assert isinstance(value, str), f'{self._name} must be a str'
        self._value = value

    def get(self) -> Optional[str]:
        return self._value

    def is_set(self) -> bool:
        return self._value is not None

    def wipe(self) -> None:
        self._value = None

    def __repr__(self):
        return f"<SessionSecret {self._name}={'<redacted>' if self.is_set() else None}>"

    __str__ = __repr__

    def __reduce__(self):
        raise TypeError(f'{self._name} cannot be serialized')

    def __copy__(self):
        raise TypeError(f'{self._name} cannot be copied')

    def __deepcopy__(self, memo):
        raise TypeError(f'{self._name} cannot be copied')


class WizardSession:

    def __init__(self):
        self._page = FIRST_PAGE
        self.path_choice = None  # type: Optional[PathChoice]
        self.password = SessionSecret('password')
        self.backup_phrase = SessionSecret('backup_phrase')
        self.alerts = AlertChannel()

    @property
    def page(self) -> Page:
        return self._page

    @page.setter
    def page(self, value: Union[Page, int]) -> None:
        self._page = Page(value)  # ValueError for anything that is not a page

    def reset(self) -> None:
        self.password.wipe()
        self.backup_phrase.wipe()
        self._page = FIRST_PAGE
        self.path_choice = None
        self.alerts.clear()

    def sanitized(self) -> Dict[str, Any]:
        return {
            'page': self._page.name,
            'path_choice': self.path_choice.value if self.path_choice else None,
            'password': '<redacted>' if self.password.is_set() else None,
            'backup_phrase': '<redacted>' if self.backup_phrase.is_set() else None,
            'alert': self.alerts.current.severity.value if self.alerts.current else None,
        }


class WizardView(NamedTuple):
    view: str
    page: Page
    params: Dict[str, Any]


PAIR_BROWSER_VIEW = 'pair_browser'


class OnboardingWizard(EventListener, Logger):

    LOGGING_SHORTCUT = 'O'

    def __init__(self, store: 'AccountStore', backend: 'WalletBackend', *,
                 codec: BackupPhraseCodec = None, config: 'SimpleConfig' = None):
        Logger.__init__(self)
        if codec is None:
            codec = BackupPhraseCodec.from_config(config) if config is not None else get_default_codec()
        self.store = store
        self.backend = backend
        self.codec = codec
        self.session = WizardSession()
        self.provisioner = AccountProvisioner(self.session, codec, backend)
        self.navmap = {
            Page.LANDING: {
                'view': 'landing',
            },
            Page.CHOOSE_PATH: {
                'view': lambda s: 'restore' if s.path_choice == PathChoice.RESTORE else 'new_internet',
            },
            Page.DATA_CONTROL: {
                'view': 'data_control',
            },
            Page.ENTER_PASSWORD: {
                'view': 'enter_password',
            },
            Page.CREATE_IDENTITY: {
                'view': 'create_identity',
            },
            Page.WRITE_DOWN_KEY: {
                'view': 'write_down_key',
            },
            Page.CONFIRM_KEY: {
                'view': 'confirm_key',
            },
            Page.ENTER_EMAIL: {
                'view': 'enter_email',
                'last': True,
            },
        }
        if store.state.account_created:
            self.logger.warning('User has refreshed browser mid onboarding.')

    def navmap_merge(self, additional_navmap: dict):
        # NOTE: only merges one level deep. Deeper dict levels will overwrite
        for k, v in additional_navmap.items():
            k = Page(k)
            if k in self.navmap:
                self.navmap[k].update(v)
            else:
                self.navmap[k] = v

    def start(self):
        self.register_callbacks()

    def stop(self):
        self.unregister_callbacks()

    # --- read-only projection

    @property
    def current_page(self) -> Page:
        return self.session.page

    @property
    def current_alert(self) -> Optional[Alert]:
        return self.session.alerts.current

    @property
    def path_choice(self) -> Optional[PathChoice]:
        return self.session.path_choice

    @property
    def is_open(self) -> bool:
        return not self.store.state.is_fully_provisioned()

    @property
    def needs_pairing(self) -> bool:
        return not self.store.state.core_connected

    @property
    def current_view(self) -> WizardView:
        page = self.session.page
        if self.needs_pairing:
            return WizardView(PAIR_BROWSER_VIEW, page, {})
        nav = self.navmap[page]
        view = nav['view']
        if callable(view):
            view = view(self.session)
        params = dict(nav.get('params', {}))
        return WizardView(view, page, params)

    def is_last_page(self, page: Page = None) -> bool:
        if page is None:
            page = self.session.page
        return bool(self.navmap[Page(page)].get('last', False))

    def reveal_backup_phrase(self) -> Optional[str]:
        """The backup phrase, only while the write-down page is showing."""
        if self.session.page != Page.WRITE_DOWN_KEY:
            return None
        return self.session.backup_phrase.get()

    # --- transitions

    def set_page(self, page: Union[Page, int]) -> None:
        self.session.page = page
        self.session.alerts.clear()
        self.log_session()

    def advance(self) -> None:
        if self.is_last_page():
            self.session.alerts.clear()
            self.logger.debug(f'advance: {self.session.page.name} is the last page')
            return
        self.set_page(self.session.page + 1)

    def choose_create_path(self) -> None:
        self.session.path_choice = PathChoice.CREATE
        self.set_page(Page.CHOOSE_PATH)

    def choose_restore_path(self) -> None:
        self.session.path_choice = PathChoice.RESTORE
        self.set_page(Page.CHOOSE_PATH)

    def jump_to_landing(self) -> None:
        self.session.path_choice = PathChoice.CREATE
        self.set_page(Page.LANDING)

    # --- user actions

    def submit_create_password(self, password: str, password_confirmation: str) -> ProvisioningResult:
        return self.provisioner.create_account(password, password_confirmation)

    def submit_restore(self, backup_phrase: str, password: str, password_confirmation: str) -> ProvisioningResult:
        return self.provisioner.restore_account(backup_phrase, password, password_confirmation)

    def _on_page(self, page: Page, action: str) -> bool:
        if self.session.page == page:
            return True
        self.logger.warning(f'{action} ignored on page {self.session.page.name}')
        return False

    def confirm_backup_phrase(self, entered: str) -> bool:
        if not self._on_page(Page.CONFIRM_KEY, 'confirm_backup_phrase'):
            return False
        phrase = self.session.backup_phrase.get()
        if phrase is None or not is_matching_phrase(phrase=phrase, phrase_again=entered):
            self.session.alerts.set_alert(
                AlertSeverity.DANGER,
                _('The identity key you entered does not match your identity key.'))
            return False
        self.advance()
        return True

    def submit_email(self, email: str) -> bool:
        if not self._on_page(Page.ENTER_EMAIL, 'submit_email'):
            return False
        email = (email or '').strip()
        if not is_valid_email(email):
            self.session.alerts.set_alert(AlertSeverity.DANGER, _('Please enter a valid email address.'))
            return False
        self.backend.email_keychain_backup(email, self.store.state.encrypted_backup_phrase)
        return True

    def skip_email_backup(self) -> bool:
        if not self._on_page(Page.ENTER_EMAIL, 'skip_email_backup'):
            return False
        self.backend.skip_email_backup()
        return True

    # --- store driven transitions

    async def on_account_created_edge(self, prev_value: bool, new_value: bool) -> None:
        """Re-derive the backup phrase once the account layer reports the
        account as created. Without the session password (e.g. the session
        was recreated after a reload) the wizard starts over.
        """
        if not (new_value and not prev_value):
            return
        self.logger.debug('account already created - checking for valid password in session')
        try:
            phrase = await self.codec.decrypt_hex(
                self.store.state.encrypted_backup_phrase, self.session.password.get())
        except Exception as e:
            # wrong password, no password and damaged ciphertext all look the same here
            self.logger.info(f'User has refreshed browser mid onboarding. ({type(e).__name__})')
            # starting over needs a fresh password
            self.session.password.wipe()
            self.session.backup_phrase.wipe()
            self.set_page(Page.LANDING)
            return
        self.logger.debug('Backup phrase successfully decrypted. Storing identity key.')
        self.session.backup_phrase.set(phrase)
        self.set_page(Page.CREATE_IDENTITY)

    @event_listener
    async def on_event_account_updated(self, store: 'AccountStore', old: AccountState, new: AccountState):
        if store is not self.store:
            return
        if new.is_fully_provisioned() and not old.is_fully_provisioned():
            self.logger.info('onboarding complete')
            self.session.reset()
        await self.on_account_created_edge(old.account_created, new.account_created)

    def log_session(self):
        self.logger.debug(f'session: {self.session.sanitized()!r}')
