# Copyright (C) 2026 The identity-wizard developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
import json
import os
import stat
import threading
from copy import deepcopy
from typing import Any, Dict, Optional, Union

from .logging import get_logger, Logger
from .util import user_dir, make_dir


_logger = get_logger(__name__)

CONFIG_FILENAME = "config"
FINAL_CONFIG_VERSION = 1


class ConfigVar(property):
    """A config key exposed as a typed attribute of SimpleConfig.

    Reading falls back to the default when the key is unset and converts the
    stored value with type_. Assigning persists the value; None unsets it.
    """

    def __init__(self, key: str, *, default: Any, type_: Optional[type] = None):
        self._key = key
        self._default = default
        self._type = type_
        property.__init__(self, self._read, self._write)

    def _read(self, config: 'SimpleConfig'):
        with config.lock:
            if not config.is_set(self._key):
                return self._default
            value = config.get(self._key)
        if self._type is None:
            return value
        try:
            return self._type(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"config key {self._key!r} holds {value!r}, not a {self._type.__name__}") from e

    def _write(self, config: 'SimpleConfig', value):
        if value is not None and self._type is not None and not isinstance(value, self._type):
            raise ValueError(f"config key {self._key!r} takes a {self._type.__name__}, got {value!r}")
        config.set_key(self._key, value)

    def key(self) -> str:
        return self._key

    def __repr__(self):
        return f"<ConfigVar {self._key!r}>"

    def __deepcopy__(self, memo):
        return self


class SimpleConfig(Logger):
    """Settings of one run, from two layers:

        1. options given on the command line
        2. the JSON 'config' file in the data directory

    The command line wins and is never written back to the file.
    """

    def __init__(self, options=None, read_user_config_function=None,
                 read_user_dir_function=None):
        Logger.__init__(self)
        self.lock = threading.RLock()
        options = options or {}
        assert all(isinstance(k, str) for k in options), f"config keys must be str: {list(options)!r}"
        self.cmdline_options = deepcopy(options)
        self.cmdline_options.pop('config_version', None)
        # injectable for tests
        self.user_dir = read_user_dir_function or user_dir
        read_user_config_function = read_user_config_function or read_user_config

        self.user_config = {}  # type: Dict[str, Any]
        self.path = self.wizard_path()
        self.user_config = read_user_config_function(self.path) or {'config_version': FINAL_CONFIG_VERSION}

    def wizard_path(self) -> str:
        path = self.get('wizard_path') or self.user_dir()
        make_dir(path, allow_symlink=False)
        self.logger.info(f"data directory {path}")
        return path

    def get(self, key: str, default=None) -> Any:
        assert isinstance(key, str), key
        with self.lock:
            value = self.cmdline_options.get(key)
            return value if value is not None else self.user_config.get(key, default)

    def is_set(self, key: Union[str, ConfigVar]) -> bool:
        if isinstance(key, ConfigVar):
            key = key.key()
        return self.get(key, default=...) is not ...

    def set_key(self, key: Union[str, ConfigVar], value, *, save: bool = True) -> None:
        """Stores value in the user config (None removes the key).
        Keys given on the command line stay as they are for this run.
        """
        if isinstance(key, ConfigVar):
            key = key.key()
        assert isinstance(key, str), key
        if key in self.cmdline_options:
            self.logger.warning(f"config key {key!r} was given on the command line, not changing it")
            return
        try:
            json.dumps(value)
        except TypeError:
            self.logger.warning(f"config key {key!r}: value is not JSON serializable, not saving it")
            return
        with self.lock:
            if value is None:
                self.user_config.pop(key, None)
            else:
                self.user_config[key] = value
            if save:
                self.save_user_config()

    def save_user_config(self) -> None:
        if not self.path:
            return
        filename = os.path.join(self.path, CONFIG_FILENAME)
        data = json.dumps(self.user_config, indent=4, sort_keys=True)
        try:
            with open(filename, "w", encoding='utf-8') as f:
                os.chmod(filename, stat.S_IRUSR | stat.S_IWUSR)  # before anything is written
                f.write(data)
        except OSError:
            # the data directory may have been removed while we were running
            if os.path.exists(self.path):
                raise

    LOG_VERBOSITY = ConfigVar('verbosity', default=False)
    LOG_VERBOSITY_SHORTCUTS = ConfigVar('verbosity_shortcuts', default=None, type_=str)
    LOG_TO_FILE = ConfigVar('log_to_file', default=False, type_=bool)
    LOCALIZATION_LANGUAGE = ConfigVar('language', default="", type_=str)
    BACKUP_PHRASE_LANGUAGE = ConfigVar('backup_phrase_language', default='english', type_=str)
    BACKUP_PHRASE_STRENGTH = ConfigVar('backup_phrase_strength', default=128, type_=int)


def read_user_config(path: Optional[str]) -> Dict[str, Any]:
    """Contents of the config file in path, {} if there is none."""
    if not path:
        return {}
    filename = os.path.join(path, CONFIG_FILENAME)
    if not os.path.exists(filename):
        return {}
    try:
        with open(filename, "r", encoding='utf-8') as f:
            result = json.load(f)
    except (OSError, ValueError) as e:
        raise ValueError(f"cannot read config file {filename}: {e}") from e
    if not isinstance(result, dict):
        raise ValueError(f"config file {filename} does not hold a JSON object")
    return result
