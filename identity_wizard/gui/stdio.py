import asyncio
import getpass
import logging
from typing import TYPE_CHECKING

from identity_wizard import logging as wizard_logging
from identity_wizard.account import AccountState, AccountStore, LocalWallet
from identity_wizard.backup_phrase import BackupPhraseCodec
from identity_wizard.i18n import _
from identity_wizard.util import UserCancelled, callback_mgr, set_asyncio_loop
from identity_wizard.wizard import OnboardingWizard

if TYPE_CHECKING:
    from identity_wizard.simple_config import SimpleConfig


# minimal console front-end for the onboarding wizard.
# all wizard calls happen on the event loop; only the blocking prompts run in the executor


class WizardGui:

    def __init__(self, config: 'SimpleConfig', *, store: AccountStore = None):
        self.config = config
        if store is None:
            store = AccountStore(AccountState(core_connected=True))
        self.store = store
        codec = BackupPhraseCodec.from_config(config)
        self.wallet = LocalWallet(store, codec, strength=config.BACKUP_PHRASE_STRENGTH)
        self.wizard = OnboardingWizard(store, self.wallet, codec=codec)
        self.handlers = {
            'pair_browser': self.show_pair_browser,
            'landing': self.show_landing,
            'new_internet': self.show_new_internet,
            'restore': self.show_restore,
            'data_control': self.show_data_control,
            'enter_password': self.show_enter_password,
            'create_identity': self.show_create_identity,
            'write_down_key': self.show_write_down_key,
            'confirm_key': self.show_confirm_key,
            'enter_email': self.show_enter_email,
        }

    async def run(self):
        set_asyncio_loop(asyncio.get_running_loop())
        if wizard_logging.console_handler is not None and not self.config.LOG_VERBOSITY:
            # keep log lines from interleaving with the prompts
            wizard_logging.console_handler.setLevel(logging.CRITICAL)
        self.wizard.start()
        try:
            while self.wizard.is_open:
                self.print_alert()
                view = self.wizard.current_view
                await self.handlers[view.view]()
                await self.wallet.wait_until_idle()
                await callback_mgr.wait_for_pending_callbacks()
            print(_("All set. Welcome!"))
        except UserCancelled:
            print(_("Cancelled."))
        finally:
            self.wizard.stop()
            set_asyncio_loop(None)

    async def prompt(self, text: str) -> str:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, input, text)
        except EOFError:
            raise UserCancelled()

    async def prompt_password(self, text: str) -> str:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, getpass.getpass, text)
        except EOFError:
            raise UserCancelled()

    def print_alert(self):
        alert = self.wizard.current_alert
        if alert:
            print(f"[{alert.severity.value}] {alert.message}")

    async def show_pair_browser(self):
        print(_("Waiting for the core node to connect..."))
        await self.prompt(_("Press enter once the core node is running. "))
        self.store.update(core_connected=True)

    async def show_landing(self):
        print(_("Welcome to the new internet."))
        c = await self.prompt(_("[c] create a new identity, [r] restore an identity: "))
        if c.strip().lower() == 'r':
            self.wizard.choose_restore_path()
        else:
            self.wizard.choose_create_path()

    async def show_new_internet(self):
        print(_("You own your identity and your data."))
        await self.prompt(_("Press enter to continue. "))
        self.wizard.advance()

    async def show_restore(self):
        phrase = await self.prompt(_("Enter your identity key, or leave empty to go back: "))
        if not phrase.strip():
            self.wizard.jump_to_landing()
            return
        password = await self.prompt_password(_("Password: "))
        confirmation = await self.prompt_password(_("Confirm password: "))
        self.wizard.submit_restore(phrase, password, confirmation)

    async def show_data_control(self):
        print(_("Your data is stored where you choose, encrypted with your keys."))
        await self.prompt(_("Press enter to continue. "))
        self.wizard.advance()

    async def show_enter_password(self):
        print(_("Choose a password. It encrypts your identity key on this device."))
        password = await self.prompt_password(_("Password: "))
        confirmation = await self.prompt_password(_("Confirm password: "))
        if self.wizard.submit_create_password(password, confirmation).ok:
            print(_("Creating your identity..."))

    async def show_create_identity(self):
        print(_("Your identity keychain is ready."))
        await self.prompt(_("Press enter to see your identity key. "))
        self.wizard.advance()

    async def show_write_down_key(self):
        print(_("Write down your identity key and keep it somewhere safe:"))
        print()
        print("    " + (self.wizard.reveal_backup_phrase() or ''))
        print()
        await self.prompt(_("Press enter once you have written it down. "))
        self.wizard.advance()

    async def show_confirm_key(self):
        entered = await self.prompt(_("Enter your identity key to confirm: "))
        self.wizard.confirm_backup_phrase(entered)

    async def show_enter_email(self):
        email = await self.prompt(_("Email address for an encrypted backup (leave empty to skip): "))
        if not email.strip():
            self.wizard.skip_email_backup()
        else:
            self.wizard.submit_email(email)
