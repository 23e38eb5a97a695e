"""
Radar Finder package
====================

This package contains the Weather Radar Finder: an offline catalog browser
for weather-radar station records.

- The CLI entry point is in `radarfinder/cli.py`.
- The session engine (search, facets, map points, exports) is in `radarfinder/engine.py`.
- Dataset loading is in `radarfinder/loader.py`.
"""

__version__ = '0.3.0'
