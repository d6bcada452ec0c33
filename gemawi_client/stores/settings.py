"""
UI preferences (language and theme), persisted under ``gemawi-settings``.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from gemawi_client.core.constants import SETTINGS_KEY
from gemawi_client.domain.enums import Language, Theme
from gemawi_client.domain.models import Settings
from gemawi_client.storage import StorageBackend
from gemawi_client.stores.base import Store

logger = logging.getLogger(__name__)


class SettingsStore(Store):
    def __init__(self, storage: StorageBackend) -> None:
        super().__init__()
        self._storage = storage
        settings = self._load()
        self._init_state(language=settings.language, theme=settings.theme)

    def _load(self) -> Settings:
        stored = self._storage.get_json(SETTINGS_KEY)
        if isinstance(stored, dict):
            try:
                return Settings.model_validate(stored)
            except ValidationError as exc:
                logger.error("Error loading settings: %s", exc)
        return Settings()

    def _save(self) -> None:
        settings = Settings(language=self["language"], theme=self["theme"])
        self._storage.set_json(SETTINGS_KEY, settings.model_dump(mode="json"))

    @property
    def language(self) -> Language:
        return self["language"]

    @property
    def theme(self) -> Theme:
        return self["theme"]

    @property
    def direction(self) -> str:
        """``rtl`` for Arabic, ``ltr`` otherwise."""
        return self.language.direction

    def set_language(self, language: str) -> None:
        self.set_state(language=Language(language))
        self._save()

    def set_theme(self, theme: str) -> None:
        self.set_state(theme=Theme(theme))
        self._save()

    def toggle_theme(self) -> Theme:
        self.set_theme(self.theme.toggled())
        return self.theme
