"""Rich Menu Studio: visual editor and publishing relay for LINE rich menus."""

__version__ = "0.1.0"
