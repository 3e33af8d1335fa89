from .crawling import ListingPort, PageResolverPort, SeriesPort
from .preferences import PreferencesPort
from .transport import HttpResponse, HttpTransportPort

__all__ = [
    "HttpResponse",
    "HttpTransportPort",
    "ListingPort",
    "PageResolverPort",
    "PreferencesPort",
    "SeriesPort",
]
