"""Preference store backed by the loaded configuration."""

from __future__ import annotations

from mangacrawl.domain.entities import DedupMode, RenderMode
from mangacrawl.infrastructure.config.schema import PreferencesConfig


class StaticPreferences:
    """``PreferencesPort`` over a ``PreferencesConfig``.

    Values are read on every call, so replacing ``config`` takes effect on
    the next crawl.
    """

    def __init__(self, config: PreferencesConfig | None = None) -> None:
        self.config = config or PreferencesConfig()

    def get_render_mode(self) -> RenderMode:
        return self.config.render_mode

    def get_dedup_mode(self) -> DedupMode:
        return self.config.dedup_mode

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = getattr(self.config, key, None)
        if isinstance(value, bool):
            return value
        return default
