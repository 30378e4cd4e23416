"""Version information for circannot."""

__version__ = "0.3.1"
__license__ = "GPL-2.0"
__description__ = "Genomic context annotation of circRNA candidate splice junctions"
