import json
import os
import tempfile
import shutil

from identity_wizard.simple_config import SimpleConfig, read_user_config

from . import IdentityWizardTestCase


class Test_SimpleConfig(IdentityWizardTestCase):

    def setUp(self):
        super(Test_SimpleConfig, self).setUp()
        # make sure "read_user_config" and "user_dir" return a temporary directory.
        self.wizard_dir = tempfile.mkdtemp()
        # Do the same for the user dir to avoid overwriting the real configuration
        # for development machines with identity-wizard installed :)
        self.user_dir = tempfile.mkdtemp()

        self.options = {"wizard_path": self.wizard_dir}

    def tearDown(self):
        super(Test_SimpleConfig, self).tearDown()
        # Remove the temporary directory after each test (to make sure we don't
        # pollute /tmp for nothing.
        shutil.rmtree(self.wizard_dir)
        shutil.rmtree(self.user_dir)

    def test_simple_config_command_line_overrides_everything(self):
        """Options passed by command line override all other configuration
        sources"""
        fake_read_user = lambda _: {"wizard_path": "b", "language": "de_DE"}
        read_user_dir = lambda: self.user_dir
        config = SimpleConfig(options=dict(self.options, language="fr_FR"),
                              read_user_config_function=fake_read_user,
                              read_user_dir_function=read_user_dir)
        self.assertEqual(self.wizard_dir, config.get("wizard_path"))
        self.assertEqual(self.wizard_dir, config.path)
        self.assertEqual("fr_FR", config.LOCALIZATION_LANGUAGE)

    def test_simple_config_user_dir_is_used_if_no_path_given(self):
        fake_read_user = lambda _: {}
        read_user_dir = lambda: self.user_dir
        config = SimpleConfig(options={},
                              read_user_config_function=fake_read_user,
                              read_user_dir_function=read_user_dir)
        self.assertEqual(self.user_dir, config.path)

    def test_cannot_set_options_passed_by_command_line(self):
        config = SimpleConfig(options=dict(self.options, verbosity="*"),
                              read_user_config_function=lambda _: {},
                              read_user_dir_function=lambda: self.user_dir)
        config.set_key("verbosity", "")
        self.assertEqual("*", config.LOG_VERBOSITY)

    def test_can_set_options_set_in_user_config(self):
        config = SimpleConfig(options=self.options,
                              read_user_config_function=lambda _: {"language": "de_DE"},
                              read_user_dir_function=lambda: self.user_dir)
        config.set_key("language", "ja_JP")
        self.assertEqual("ja_JP", config.get("language"))

    def test_user_config_is_not_written_with_read_only_config(self):
        """The user config does not contain command-line options when saved."""
        fake_read_user = lambda _: {"something": "a"}
        read_user_dir = lambda: self.user_dir
        self.options.update({"something": "c"})
        config = SimpleConfig(options=self.options,
                              read_user_config_function=fake_read_user,
                              read_user_dir_function=read_user_dir)
        config.save_user_config()
        with open(os.path.join(self.wizard_dir, "config"), "r") as f:
            result = json.loads(f.read())
        result.pop('config_version', None)
        self.assertEqual({"something": "a"}, result)

    def test_configvar_defaults(self):
        config = SimpleConfig(self.options)
        self.assertEqual('english', config.BACKUP_PHRASE_LANGUAGE)
        self.assertEqual(128, config.BACKUP_PHRASE_STRENGTH)
        self.assertFalse(config.LOG_TO_FILE)
        self.assertEqual("", config.LOCALIZATION_LANGUAGE)
        self.assertFalse(config.is_set(SimpleConfig.BACKUP_PHRASE_STRENGTH))

    def test_configvars_set_and_get(self):
        config = SimpleConfig(self.options)
        self.assertEqual("backup_phrase_strength", SimpleConfig.BACKUP_PHRASE_STRENGTH.key())
        config.BACKUP_PHRASE_STRENGTH = 256
        self.assertEqual(256, config.BACKUP_PHRASE_STRENGTH)
        self.assertTrue(config.is_set(SimpleConfig.BACKUP_PHRASE_STRENGTH))
        # persisted
        self.assertEqual(256, read_user_config(self.wizard_dir)["backup_phrase_strength"])
        with self.assertRaises(ValueError):
            config.BACKUP_PHRASE_STRENGTH = "many"
        config.BACKUP_PHRASE_STRENGTH = None
        self.assertEqual(128, config.BACKUP_PHRASE_STRENGTH)

    def test_configvar_type_conversion(self):
        config = SimpleConfig(options=dict(self.options, backup_phrase_strength="160"),
                              read_user_config_function=lambda _: {},
                              read_user_dir_function=lambda: self.user_dir)
        self.assertEqual(160, config.BACKUP_PHRASE_STRENGTH)

    def test_configvar_unconvertible_value(self):
        config = SimpleConfig(options=dict(self.options, backup_phrase_strength="lots"),
                              read_user_config_function=lambda _: {},
                              read_user_dir_function=lambda: self.user_dir)
        with self.assertRaises(ValueError):
            config.BACKUP_PHRASE_STRENGTH

    def test_config_file_not_a_dict(self):
        with open(os.path.join(self.wizard_dir, "config"), "w") as f:
            f.write("[1, 2]")
        with self.assertRaises(ValueError):
            read_user_config(self.wizard_dir)


class TestUserConfig(IdentityWizardTestCase):

    def setUp(self):
        super(TestUserConfig, self).setUp()
        self.user_dir = tempfile.mkdtemp()

    def tearDown(self):
        super(TestUserConfig, self).tearDown()
        shutil.rmtree(self.user_dir)

    def test_no_path_means_no_configuration(self):
        self.assertEqual({}, read_user_config(None))

    def test_path_without_config_file(self):
        self.assertEqual({}, read_user_config(self.user_dir))

    def test_path_with_reprd_dict(self):
        thefile = {"language": "de_DE", "backup_phrase_strength": 256}
        with open(os.path.join(self.user_dir, "config"), "w") as f:
            f.write(json.dumps(thefile))
        self.assertEqual(thefile, read_user_config(self.user_dir))

    def test_path_with_invalid_config(self):
        with open(os.path.join(self.user_dir, "config"), "w") as f:
            f.write("this is not a config file")
        with self.assertRaises(ValueError):
            read_user_config(self.user_dir)
