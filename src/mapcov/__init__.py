"""mapcov - remap coverage of transpiled code onto original sources via cached source maps."""

from mapcov.sourcemaps import SourceMapSession

__version__ = "0.1.0"

__all__ = ["SourceMapSession", "__version__"]
