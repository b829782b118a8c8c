"""Key-based translation lookup with default-locale fallback.

Catalogs are nested JSON mappings, one file per locale under
``zenvoyer/locales``. Lookups take a dotted key path such as
``"invoices.total"``. A key missing from the selected locale is looked up in
the default locale; a key missing everywhere comes back unchanged so the UI
shows something visible instead of failing.

The selected locale is never global state: callers hold a ``LocaleContext``
(one per request or session) and pass it where translation is needed.
"""

import re
import json
import logging
from pathlib import Path
from typing import Any, Mapping, Optional

from fastapi import Request

logger = logging.getLogger(__name__)

PLACEHOLDER = re.compile(r"\{(\w+)\}")

LOCALE_NAMES = {
    "en": "English",
    "id": "Bahasa Indonesia",
}

_MISSING = object()


def _walk(catalog: Mapping[str, Any], parts: list[str]) -> Any:
    value: Any = catalog
    for part in parts:
        if isinstance(value, Mapping) and part in value:
            value = value[part]
        else:
            return _MISSING
    return value


class Translator:
    """Holds the loaded catalogs and resolves keys against them."""

    def __init__(self, catalogs: Mapping[str, Mapping[str, Any]], default_locale: str = "en"):
        if default_locale not in catalogs:
            raise ValueError(f"Default locale '{default_locale}' has no catalog")
        self._catalogs = dict(catalogs)
        self.default_locale = default_locale

    @classmethod
    def from_directory(cls, directory: Path, default_locale: str = "en") -> "Translator":
        """Load every ``<code>.json`` file in directory as a catalog."""
        catalogs = {}
        for path in sorted(Path(directory).glob("*.json")):
            with path.open(encoding="utf-8") as f:
                catalogs[path.stem] = json.load(f)
        logger.info(f"Loaded locales: {', '.join(catalogs) or 'none'}")
        return cls(catalogs, default_locale)

    def list_locales(self) -> list[str]:
        """Codes of the loaded catalogs."""
        return list(self._catalogs)

    def is_supported(self, locale: Optional[str]) -> bool:
        """True when a catalog is loaded for locale."""
        return locale in self._catalogs

    def display_name(self, locale: str) -> str:
        """Human readable name, or the code itself when unknown."""
        return LOCALE_NAMES.get(locale, locale)

    def catalog(self, locale: str) -> Optional[dict]:
        """Raw nested catalog for locale, None if unsupported."""
        return self._catalogs.get(locale)

    def translate(self, key: str, variables: Optional[Mapping[str, Any]] = None, locale: Optional[str] = None) -> str:
        """Resolve key for locale, falling back to the default locale, then to key itself."""
        parts = key.split(".")
        value = _MISSING
        if locale and locale in self._catalogs:
            value = _walk(self._catalogs[locale], parts)
        if value is _MISSING:
            value = _walk(self._catalogs[self.default_locale], parts)
        if not isinstance(value, str):
            return key

        if variables:
            def substitute(match: re.Match) -> str:
                name = match.group(1)
                if name in variables and variables[name] is not None:
                    return str(variables[name])
                return match.group(0)

            return PLACEHOLDER.sub(substitute, value)
        return value

    def context(self, locale: Optional[str] = None) -> "LocaleContext":
        return LocaleContext(self, locale or self.default_locale)


class LocaleContext:
    """Explicit locale selection bound to a translator."""

    def __init__(self, translator: Translator, locale: str):
        self.translator = translator
        self._locale = locale if translator.is_supported(locale) else translator.default_locale

    def get_locale(self) -> str:
        return self._locale

    def set_locale(self, locale: str) -> bool:
        """Switch locale; unsupported locales are ignored. Returns whether it changed."""
        if not self.translator.is_supported(locale):
            return False
        self._locale = locale
        return True

    def list_locales(self) -> list[str]:
        return self.translator.list_locales()

    def translate(self, key: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        return self.translator.translate(key, variables, locale=self._locale)

    t = translate


def negotiate_locale(translator: Translator, explicit: Optional[str], accept_language: Optional[str]) -> str:
    """Pick a supported locale from an explicit choice or an Accept-Language header."""
    if explicit and translator.is_supported(explicit):
        return explicit

    if accept_language:
        for part in accept_language.split(","):
            tag = part.split(";")[0].strip().lower()
            if not tag:
                continue
            if translator.is_supported(tag):
                return tag
            primary = tag.split("-")[0]
            if translator.is_supported(primary):
                return primary

    return translator.default_locale


def request_locale(request: Request) -> LocaleContext:
    """Locale context for a request: ``?locale=``, then Accept-Language, then default."""
    translator: Translator = request.app.state.translator
    locale = negotiate_locale(
        translator,
        request.query_params.get("locale"),
        request.headers.get("accept-language"),
    )
    return translator.context(locale)
