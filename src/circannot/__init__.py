"""circannot: host gene, gene feature and known-junction annotation of circRNAs."""

from circannot.__version__ import __version__, __license__, __description__

__all__ = ["__version__", "__license__", "__description__"]
