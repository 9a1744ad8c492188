import logging
import os
import pathlib
import tempfile
import shutil

from identity_wizard import logging as wizard_logging
from identity_wizard.logging import ConsoleFormatter, Logger, get_logger

from . import IdentityWizardTestCase


def make_record(name: str, level: int = logging.INFO, shortcut: str = None) -> logging.LogRecord:
    record = logging.LogRecord(name, level, __file__, 1, "hello", None, None)
    if shortcut is not None:
        record.shortcut = shortcut
    return record


class Tagged(Logger):
    LOGGING_SHORTCUT = 'T'


class TestShortcuts(IdentityWizardTestCase):

    def test_logger_mixin_tags_records(self):
        obj = Tagged()
        self.assertEqual('identity_wizard.tests.test_logging.Tagged', obj.logger.name)
        with self.assertLogs(obj.logger, level='INFO') as ctx:
            obj.logger.info("tagged")
        self.assertEqual('T', ctx.records[0].shortcut)
        # a second instance does not stack filters
        Tagged()
        self.assertEqual(1, len(obj.logger.filters))

    def test_console_format(self):
        fmt = ConsoleFormatter()
        self.assertEqual("I/W | wallet | hello",
                         fmt.format(make_record('identity_wizard.account.LocalWallet', shortcut='W')))
        self.assertEqual("W | provisioner.[x] | hello",
                         fmt.format(make_record('identity_wizard.provisioner.AccountProvisioner.[x]', logging.WARNING)))

    def test_whitelist(self):
        only_wallet = wizard_logging._ShortcutSelector('WP')
        self.assertTrue(only_wallet.filter(make_record('a', shortcut='W')))
        self.assertFalse(only_wallet.filter(make_record('a', shortcut='O')))
        self.assertFalse(only_wallet.filter(make_record('a')))
        self.assertTrue(only_wallet.filter(make_record('a', logging.ERROR, shortcut='O')))

    def test_blacklist(self):
        no_wallet = wizard_logging._ShortcutSelector('^W')
        self.assertFalse(no_wallet.filter(make_record('a', shortcut='W')))
        self.assertTrue(no_wallet.filter(make_record('a', shortcut='O')))
        self.assertTrue(no_wallet.filter(make_record('a')))


class TestLogLevels(IdentityWizardTestCase):

    def setUp(self):
        super().setUp()
        self.loggers = [wizard_logging.package_logger, get_logger('wizard'), get_logger('account')]
        self.levels = [logger.level for logger in self.loggers]

    def tearDown(self):
        for logger, level in zip(self.loggers, self.levels):
            logger.setLevel(level)
        super().tearDown()

    def test_levels_per_logger(self):
        wizard_logging._apply_log_levels('info,wizard=debug,account=warning')
        self.assertEqual(logging.INFO, wizard_logging.package_logger.level)
        self.assertEqual(logging.DEBUG, get_logger('wizard').level)
        self.assertEqual(logging.WARNING, get_logger('identity_wizard.account').level)

    def test_star_changes_nothing(self):
        wizard_logging._apply_log_levels('*')
        self.assertEqual(self.levels, [logger.level for logger in self.loggers])

    def test_invalid_setting(self):
        with self.assertRaises(ValueError):
            wizard_logging._apply_log_levels('=debug')


class TestLogfiles(IdentityWizardTestCase):

    def setUp(self):
        super().setUp()
        self.log_dir = pathlib.Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.log_dir)
        super().tearDown()

    def test_old_logfiles_are_removed(self):
        names = [f"identity_wizard_2026010{i}T000000Z_1.log" for i in range(1, 6)]
        for name in names:
            (self.log_dir / name).touch()
        (self.log_dir / "notes.txt").touch()
        wizard_logging._remove_old_logfiles(self.log_dir, keep=2)
        self.assertEqual(sorted(names[-2:] + ["notes.txt"]), sorted(os.listdir(self.log_dir)))
