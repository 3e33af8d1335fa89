from __future__ import annotations

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from mangacrawl.domain.exceptions import SiteLoadError, SiteValidationError
from mangacrawl.domain.sites import SiteProfile
from mangacrawl.infrastructure.sites.adapters import to_domain_site_profile
from mangacrawl.infrastructure.sites.validation_schema import SiteProfileDefinition

log = structlog.get_logger(__name__)


def load_site_profile(path: Path) -> SiteProfile:
    """Load and validate a YAML site profile, returning the domain model."""
    try:
        raw = path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw)
        if data is None:
            raise SiteValidationError("YAML file is empty")
        if not isinstance(data, dict):
            raise SiteValidationError("YAML root must be a mapping/object")

        definition = SiteProfileDefinition.model_validate(data)
        return to_domain_site_profile(definition)
    except (OSError, UnicodeDecodeError) as e:
        log.error(
            "site_load_failed",
            site_file=str(path),
            error_type=type(e).__name__,
            error_message=str(e),
        )
        raise SiteLoadError(str(e)) from e
    except ValidationError as e:
        log.error(
            "site_validation_failed",
            site_file=str(path),
            error_type="ValidationError",
            error_details=e.errors(),
        )
        raise SiteValidationError(str(e)) from e
    except yaml.YAMLError as e:
        log.error(
            "site_validation_failed",
            site_file=str(path),
            error_type=type(e).__name__,
            error_message=str(e),
        )
        raise SiteValidationError(str(e)) from e
