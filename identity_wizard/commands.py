# Copyright (C) 2026 The identity-wizard developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
import argparse
import asyncio
import sys
from typing import Optional, Sequence

from .backup_phrase import STRENGTH_BY_WORD_COUNT
from .i18n import languages, set_language
from .logging import configure_logging, get_logger
from .simple_config import SimpleConfig
from .version import IDENTITY_WIZARD_VERSION


_logger = get_logger(__name__)


def add_global_options(parser, suppress=False):
    group = parser.add_argument_group('global options')
    group.add_argument(
        "-v", dest="verbosity", default=None,
        help=argparse.SUPPRESS if suppress else "Set verbosity (log levels)")
    group.add_argument(
        "-V", dest="verbosity_shortcuts", default=None,
        help=argparse.SUPPRESS if suppress else "Set verbosity (shortcut-filter list)")
    group.add_argument(
        "-D", "--dir", dest="wizard_path",
        help=argparse.SUPPRESS if suppress else "identity-wizard directory")
    group.add_argument(
        "--log-to-file", action="store_true", dest=SimpleConfig.LOG_TO_FILE.key(), default=None,
        help=argparse.SUPPRESS if suppress else "Write logs to the data directory")


def _word_count_to_strength(value: str) -> int:
    try:
        return STRENGTH_BY_WORD_COUNT[int(value)]
    except (ValueError, KeyError):
        raise argparse.ArgumentTypeError(f"invalid word count: {value!r}")


def get_parser():
    parser = argparse.ArgumentParser(
        prog='run_identity_wizard',
        description="Create or restore an identity keychain.")
    parser.add_argument(
        "--version", action='version', version=f"identity-wizard {IDENTITY_WIZARD_VERSION}")
    parser.add_argument(
        "-L", "--lang", dest=SimpleConfig.LOCALIZATION_LANGUAGE.key(), default=None,
        choices=[lang for lang in languages if lang],
        help="language used in the wizard")
    parser.add_argument(
        "--words", dest=SimpleConfig.BACKUP_PHRASE_STRENGTH.key(), default=None,
        type=_word_count_to_strength,
        metavar='{' + ','.join(map(str, STRENGTH_BY_WORD_COUNT)) + '}',
        help="number of words of a newly created identity key")
    add_global_options(parser)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = get_parser()
    args = parser.parse_args(argv)
    # options not given on the command line fall through to the user config
    config_options = {k: v for k, v in vars(args).items() if v is not None}
    config = SimpleConfig(config_options)
    configure_logging(config)
    set_language(config.LOCALIZATION_LANGUAGE)

    from .gui.stdio import WizardGui
    gui = WizardGui(config)
    try:
        asyncio.run(gui.run())
    except KeyboardInterrupt:
        _logger.info("interrupted by user")
        print(file=sys.stderr)
        return 1
    return 0
