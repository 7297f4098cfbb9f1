"""Localization package providing translated user-facing texts."""

from .i18n_service import I18nService

__all__ = ["I18nService"]
