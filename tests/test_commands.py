import contextlib
import io

from identity_wizard.commands import get_parser
from identity_wizard.gui.stdio import WizardGui
from identity_wizard.simple_config import SimpleConfig
from identity_wizard.util import UserCancelled

from . import IdentityWizardTestCase
from .test_backup_phrase import VALID_PHRASE_12


class TestParser(IdentityWizardTestCase):

    def test_defaults_leave_config_alone(self):
        args = get_parser().parse_args([])
        options = {k: v for k, v in vars(args).items() if v is not None}
        self.assertEqual({}, options)

    def test_global_options(self):
        args = get_parser().parse_args(['-v', 'wizard', '-D', '/tmp/x', '-L', 'de_DE', '--log-to-file', '--words', '24'])
        self.assertEqual('wizard', args.verbosity)
        self.assertEqual('/tmp/x', args.wizard_path)
        self.assertEqual('de_DE', getattr(args, SimpleConfig.LOCALIZATION_LANGUAGE.key()))
        self.assertTrue(getattr(args, SimpleConfig.LOG_TO_FILE.key()))
        self.assertEqual(256, getattr(args, SimpleConfig.BACKUP_PHRASE_STRENGTH.key()))

    def test_unknown_language(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                get_parser().parse_args(['-L', 'xx_XX'])

    def test_invalid_word_count(self):
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                get_parser().parse_args(['--words', '13'])
            with self.assertRaises(SystemExit):
                get_parser().parse_args(['--words', 'twelve'])


class ScriptedWizardGui(WizardGui):
    """Answers prompts from a list. Callables get the gui and return the answer."""

    def __init__(self, config, answers, **kwargs):
        WizardGui.__init__(self, config, **kwargs)
        self.answers = list(answers)

    async def prompt(self, text):
        if not self.answers:
            raise UserCancelled()
        answer = self.answers.pop(0)
        if callable(answer):
            answer = answer(self)
        return answer

    prompt_password = prompt


def current_phrase(gui: WizardGui) -> str:
    return gui.wizard.session.backup_phrase.get()


class TestStdioGui(IdentityWizardTestCase):

    def setUp(self):
        super().setUp()
        self.config = SimpleConfig({'wizard_path': self.wizard_path, 'verbosity': '*'})

    async def _run(self, gui: WizardGui) -> str:
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            await gui.run()
        return out.getvalue()

    async def test_create_identity(self):
        gui = ScriptedWizardGui(self.config, [
            'c', '', '',           # landing, new internet, data control
            'pw', 'typo',          # mismatching passwords
            'pw', 'pw',
            '', '',                # create identity, write down key
            current_phrase,
            'satoshi@example.com',
        ])
        output = await self._run(gui)
        self.assertIn('does not match', output)
        self.assertFalse(gui.wizard.is_open)
        self.assertEqual([], gui.answers)
        self.assertEqual(1, len(gui.wallet.emailed_backups))
        self.assertIn('All set', output)

    async def test_restore_identity(self):
        gui = ScriptedWizardGui(self.config, [
            'r', VALID_PHRASE_12, 'pw', 'pw',
            '', '',
            VALID_PHRASE_12,
            '',                    # skip email backup
        ])
        output = await self._run(gui)
        self.assertIn(VALID_PHRASE_12, output)
        self.assertFalse(gui.wizard.is_open)
        self.assertEqual([], gui.wallet.emailed_backups)

    async def test_back_to_landing_from_restore(self):
        gui = ScriptedWizardGui(self.config, ['r', ''])
        output = await self._run(gui)
        self.assertIn('Cancelled', output)
        self.assertEqual('landing', gui.wizard.current_view.view)
        self.assertTrue(gui.wizard.is_open)
