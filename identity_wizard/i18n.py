# Copyright (C) 2026 The identity-wizard developers
# Distributed under the MIT software license, see the accompanying
# file LICENCE or http://www.opensource.org/licenses/mit-license.php
"""Translation of user-facing text.

Catalogs are gettext .mo files under identity_wizard/locale/<lang>/LC_MESSAGES/,
compiled from the .po sources next to them. English is the source language.
Strings with replacement fields go through _() first and are formatted
afterwards: _("Sent to {}").format(email), never an f-string.
"""
import functools
import gettext
import os
import string
from typing import Optional

from .logging import get_logger


_logger = get_logger(__name__)

LOCALE_DIR = os.path.join(os.path.dirname(__file__), 'locale')
GETTEXT_DOMAIN = 'identity_wizard'


def _get_null_translations() -> gettext.NullTranslations:
    return gettext.NullTranslations()


_language = _get_null_translations()


def _field_names(fmt: str):
    return [field for _literal, field, _spec, _conv in string.Formatter().parse(fmt)]


def _keeps_format_fields(translator):
    """Falls back to the source string when a translation would break .format():
    it must parse, and it must use the same replacement fields as the source,
    in any order.
    """
    @functools.wraps(translator)
    def checked(msg: str, **kwargs) -> str:
        translation = translator(msg, **kwargs)
        source_fields = _field_names(msg)
        try:
            fields = _field_names(translation)
        except ValueError:
            _logger.info(f"dropping translation that does not parse: {msg!r} -> {translation!r}")
            return msg
        if len(fields) != len(source_fields) or set(fields) != set(source_fields):
            _logger.info(f"dropping translation with other replacement fields: {msg!r} -> {translation!r}")
            return msg
        return translation
    return checked


@_keeps_format_fields
def _(msg: str, *, context: Optional[str] = None) -> str:
    if msg == "":
        return ""  # gettext maps "" to the catalog header
    if context:
        # contexts are looked up both with and without a trailing '|'
        alt = context[:-1] if context.endswith('|') else context + '|'
        for ctx in (context, alt):
            out = _language.pgettext(ctx, msg)
            if out != msg:
                return out
    return _language.gettext(msg)


def set_language(lang: Optional[str]) -> None:
    """Switches the catalog used by _(). Unknown languages fall back to English."""
    global _language
    _logger.info(f"setting language to {lang!r}")
    if not lang:
        return
    if lang.startswith("en_"):
        _language = _get_null_translations()
        return
    _language = gettext.translation(GETTEXT_DOMAIN, LOCALE_DIR, languages=[lang], fallback=True)
    if isinstance(_language, gettext.GNUTranslations):
        return
    _logger.warning(f"no translations for language {lang!r}, using English")


# offered by the '-L' option; '' keeps the default
languages = {
    '': 'Default',
    'de_DE': 'Deutsch',
    'en_UK': 'English',
}
