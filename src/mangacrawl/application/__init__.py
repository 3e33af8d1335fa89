from .source import MangaSource

__all__ = ["MangaSource"]
