"""Golf Order of Merit builder.

Collects a season of competition results from the golf club website,
caches them locally for offline reruns and ranks players by Order of
Merit points.
"""

__version__ = "0.1.0"
