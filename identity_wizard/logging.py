# Copyright (C) 2026 The identity-wizard developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
"""Logger tree of the package.

Every module logs through get_logger(__name__), every long-lived object
through the Logger mixin. Nothing reaches a handler until configure_logging
runs: by default the console only shows warnings, '-v' opens it up per
logger, '-V' filters lines by the one-letter LOGGING_SHORTCUT of a class.
"""
import copy
import datetime
import logging
import os
import pathlib
import sys
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .simple_config import SimpleConfig


PACKAGE_NAME = 'identity_wizard'
KEEP_LOGFILES = 10

# long class loggers get a short alias on output
_ALIASES = (
    ('wizard.OnboardingWizard', 'wizard'),
    ('provisioner.AccountProvisioner', 'provisioner'),
    ('account.LocalWallet', 'wallet'),
)


def _relative_name(name: str) -> str:
    prefix = PACKAGE_NAME + '.'
    return name[len(prefix):] if name.startswith(prefix) else name


def _aliased(record: logging.LogRecord) -> logging.LogRecord:
    record = copy.copy(record)
    name = _relative_name(record.name)
    for long_name, alias in _ALIASES:
        if name.startswith(long_name):
            name = alias + name[len(long_name):]
            break
    record.name = name
    return record


class ConsoleFormatter(logging.Formatter):
    """'I/W | wizard | ...': level letter, then the shortcut of the class if it has one."""

    def __init__(self):
        super().__init__(fmt="%(levelname).1s | %(name)s | %(message)s")

    def format(self, record):
        record = _aliased(record)
        line = super().format(record)
        tag = getattr(record, 'shortcut', None)
        if tag:
            line = f"{line[0]}/{tag}{line[1:]}"
        return line


class FileFormatter(logging.Formatter):

    def __init__(self):
        super().__init__(fmt="%(asctime)s | %(levelname)8s | %(name)s | %(message)s")

    def formatTime(self, record, datefmt=None):
        when = datetime.datetime.fromtimestamp(record.created, tz=datetime.timezone.utc)
        return when.strftime(datefmt or "%Y-%m-%dT%H:%M:%S.%fZ")

    def format(self, record):
        return super().format(_aliased(record))


class _ShortcutTagger(logging.Filter):
    """Attached to the logger of a Logger subclass, stamps its shortcut on each record."""

    def __init__(self, shortcut: str):
        super().__init__()
        self.shortcut = shortcut

    def filter(self, record):
        record.shortcut = self.shortcut
        return True


class _ShortcutSelector(logging.Filter):
    """Console filter built from '-V'. 'WP' keeps only those classes, '^WP' hides them."""

    def __init__(self, selection: str):
        super().__init__()
        self.exclude = selection.startswith('^')
        self.shortcuts = selection.lstrip('^')

    def filter(self, record):
        if record.levelno >= logging.ERROR or record.name == __name__:
            return True
        tag = getattr(record, 'shortcut', None)
        if tag is None:
            return self.exclude
        return (tag in self.shortcuts) != self.exclude


root_logger = logging.getLogger()
root_logger.setLevel(logging.WARNING)

package_logger = logging.getLogger(PACKAGE_NAME)
package_logger.setLevel(logging.DEBUG)


def get_logger(name: str) -> logging.Logger:
    return package_logger.getChild(_relative_name(name))


_logger = get_logger(__name__)
_logger.setLevel(logging.INFO)


class Logger:
    """Mixin giving an object its own logger, named after its class."""

    # one letter used by the '-V' console filter, need not be unique
    LOGGING_SHORTCUT = None  # type: Optional[str]

    def __init__(self):
        self.logger = self._make_logger()

    def _make_logger(self) -> logging.Logger:
        cls = type(self)
        name = f"{cls.__module__}.{cls.__name__}"
        diag_name = self.diagnostic_name()
        if diag_name:
            name += f".[{diag_name}]"
        logger = get_logger(name)
        if self.LOGGING_SHORTCUT and not any(isinstance(f, _ShortcutTagger) for f in logger.filters):
            logger.addFilter(_ShortcutTagger(self.LOGGING_SHORTCUT))
        return logger

    def diagnostic_name(self) -> str:
        return ''


def _apply_log_levels(verbosity) -> None:
    """verbosity: '*' for everything, or e.g. 'info,wizard=debug,wallet=warning'."""
    if not isinstance(verbosity, str) or verbosity == '*':
        return
    for item in filter(None, verbosity.split(',')):
        name, sep, level = item.rpartition('=')
        if sep and not name:
            raise ValueError(f"invalid log level setting: {item!r}")
        logger = get_logger(name) if sep else package_logger
        logger.setLevel(level.upper())


console_handler = None  # type: Optional[logging.Handler]
def _start_console_logging(*, verbosity=None, verbosity_shortcuts=None) -> None:
    global console_handler
    if console_handler is not None:
        _logger.warning("console logging already started")
        return
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(ConsoleFormatter())
    root_logger.addHandler(console_handler)
    if not (verbosity or verbosity_shortcuts):
        console_handler.setLevel(logging.WARNING)
        return
    console_handler.setLevel(logging.DEBUG)
    _apply_log_levels(verbosity)
    if isinstance(verbosity_shortcuts, str) and verbosity_shortcuts:
        # on the handler, not on a logger: logger filters do not see propagated records
        console_handler.addFilter(_ShortcutSelector(verbosity_shortcuts))


def _remove_old_logfiles(log_dir: pathlib.Path, keep: int = KEEP_LOGFILES) -> None:
    # names start with a UTC timestamp, so name order is age order
    logfiles = sorted(log_dir.glob(f"{PACKAGE_NAME}_*.log"), reverse=True)
    for path in logfiles[keep:]:
        try:
            path.unlink()
        except OSError as e:
            _logger.warning(f"could not remove old logfile {path}: {e!r}")


logfile_path = None  # type: Optional[pathlib.Path]
def _start_file_logging(log_dir: pathlib.Path) -> None:
    global logfile_path
    assert logfile_path is None, "file logging already started"
    log_dir.mkdir(exist_ok=True)
    _remove_old_logfiles(log_dir)
    stamp = datetime.datetime.now(datetime.timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    logfile_path = log_dir / f"{PACKAGE_NAME}_{stamp}_{os.getpid()}.log"
    handler = logging.FileHandler(logfile_path, encoding='utf-8')
    handler.setFormatter(FileFormatter())
    handler.setLevel(logging.DEBUG)
    root_logger.addHandler(handler)


def configure_logging(config: 'SimpleConfig', *, log_to_file: Optional[bool] = None) -> None:
    verbosity = config.LOG_VERBOSITY
    shortcuts = config.LOG_VERBOSITY_SHORTCUTS
    _start_console_logging(verbosity=verbosity, verbosity_shortcuts=shortcuts)
    if log_to_file is None:
        log_to_file = config.LOG_TO_FILE
    if log_to_file:
        _start_file_logging(pathlib.Path(config.path) / "logs")

    from .version import IDENTITY_WIZARD_VERSION
    _logger.info(f"identity-wizard {IDENTITY_WIZARD_VERSION} on Python {sys.version.split()[0]}")
    _logger.info(f"log levels {verbosity!r}, shortcuts {shortcuts!r}, logfile {logfile_path}")
