"""Site profile registry with lazy loading and in-memory caching."""

from __future__ import annotations

from pathlib import Path

import structlog
import yaml

from mangacrawl.domain.exceptions import DuplicateSiteError, SiteNotFoundError
from mangacrawl.domain.sites import SiteProfile

from .loader import load_site_profile

log = structlog.get_logger(__name__)


class SiteRegistry:
    """
    Lazy-loading site profile registry.

    discover():
      - indexes files only (no YAML parsing)

    get()/load_all()/list_names():
      - parse on demand and cache results by site name
    """

    def __init__(self, site_dir: Path) -> None:
        self._site_dir = site_dir
        self._discovered: bool = False
        self._paths: list[Path] = []
        self._cache: dict[str, SiteProfile] = {}

    @property
    def site_dir(self) -> Path:
        return self._site_dir

    def discover(self) -> None:
        if self._discovered:
            return

        self._discovered = True
        self._paths = []

        if not self._site_dir.is_dir():
            log.warning("site_directory_not_found", directory=str(self._site_dir))
            return

        for path in sorted(self._site_dir.iterdir(), key=lambda p: p.name):
            if path.is_file() and path.suffix.lower() in {".yaml", ".yml"}:
                self._paths.append(path)

        log.info(
            "sites_discovered",
            count=len(self._paths),
            directory=str(self._site_dir),
        )

        if not self._paths:
            log.warning("no_sites_found", directory=str(self._site_dir))

    def list_names(self) -> list[str]:
        self.discover()

        names: set[str] = set()
        for path in self._paths:
            name = self._peek_name(path)
            # duplicates are surfaced on load_all()
            if name is not None:
                names.add(name)
        return sorted(names)

    def get(self, name: str) -> SiteProfile:
        self.discover()

        cached = self._cache.get(name)
        if cached is not None:
            return cached

        for path in self._paths:
            if self._peek_name(path) != name:
                continue
            return self._load(path)

        raise SiteNotFoundError(f"Site '{name}' not found")

    def load_all(self) -> list[SiteProfile]:
        """
        Force-load all discovered profiles.

        Raises DuplicateSiteError or the loader's validation/load errors.
        """
        self.discover()

        seen: set[str] = set()
        profiles: list[SiteProfile] = []
        for path in self._paths:
            profile = load_site_profile(path)
            if profile.name in seen:
                raise DuplicateSiteError(f"Site name '{profile.name}' already exists")
            seen.add(profile.name)
            self._cache.setdefault(profile.name, profile)
            profiles.append(profile)
        return profiles

    def _load(self, path: Path) -> SiteProfile:
        profile = load_site_profile(path)
        cached = self._cache.get(profile.name)
        if cached is not None:
            return cached
        self._cache[profile.name] = profile
        log.info("site_loaded", site=profile.name, site_file=str(path))
        return profile

    def _peek_name(self, path: Path) -> str | None:
        """Read the top-level ``name`` without full validation."""
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError):
            return None
        if not isinstance(data, dict):
            return None
        name = data.get("name")
        return name if isinstance(name, str) and name.strip() else None
