from .extractors import SiteExtractors, selector_extractors
from .loader import load_site_profile
from .registry import SiteRegistry

__all__ = [
    "SiteExtractors",
    "SiteRegistry",
    "load_site_profile",
    "selector_extractors",
]
