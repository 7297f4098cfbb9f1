"""Service resolving localized texts by dotted key."""

import logging
from typing import Any, Dict, Optional

from backend.conf.config import Config
from backend.conf.texts import TEXTS

logger = logging.getLogger(__name__)


class I18nService:
    """Translate dotted keys such as ``texts.extensions.files.errorFileTooLarge``.

    Lookups fall back to the fallback locale and finally to the key itself,
    so a missing translation never breaks the caller.
    """

    def __init__(
        self,
        locale: Optional[str] = None,
        texts: Optional[Dict[str, Dict[str, Any]]] = None,
    ) -> None:
        self.texts = texts if texts is not None else TEXTS
        self.locale = locale or Config.LOCALE
        if self.locale not in self.texts:
            logger.warning(
                f"Unknown locale '{self.locale}', using '{Config.FALLBACK_LOCALE}'"
            )
            self.locale = Config.FALLBACK_LOCALE

    def _lookup(self, locale: str, key: str) -> Optional[str]:
        node: Any = self.texts.get(locale, {})
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node if isinstance(node, str) else None

    def t(self, key: str, **args: Any) -> str:
        """Translate a key, formatting ``{name}`` placeholders with args."""
        text = self._lookup(self.locale, key)
        if text is None and self.locale != Config.FALLBACK_LOCALE:
            text = self._lookup(Config.FALLBACK_LOCALE, key)
        if text is None:
            logger.warning(f"Missing translation for '{key}'")
            return key

        try:
            return text.format(**args)
        except (KeyError, IndexError):
            logger.warning(f"Missing arguments for translation '{key}'")
            return text
