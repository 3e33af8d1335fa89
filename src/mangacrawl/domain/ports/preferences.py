"""Port for user preferences read at call time."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from mangacrawl.domain.entities import DedupMode, RenderMode


@runtime_checkable
class PreferencesPort(Protocol):
    """Read-only view of the preference store; writes happen elsewhere."""

    def get_render_mode(self) -> RenderMode: ...
    def get_dedup_mode(self) -> DedupMode: ...
    def get_bool(self, key: str, default: bool = False) -> bool: ...
