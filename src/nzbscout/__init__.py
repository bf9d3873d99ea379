"""nzbscout - NZB result post-processing and TMDB localization helpers."""

__version__ = "0.1.0"
