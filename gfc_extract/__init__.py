"""Global Forest Change tile extraction.

Selects the 10-degree dataset tiles that cover an area of interest,
mosaics and crops them from a local folder, and optionally reprojects
the result to UTM and rescales reflectance composites.
"""

__version__ = "0.1.0"
