"""Metadata resolution components for nzbscout.

This package contains the release-title parser used to annotate search
results and the TMDB client used to resolve and localize titles.
"""

from nzbscout.metadata.tmdb import TMDBClient

__all__ = ["TMDBClient"]
