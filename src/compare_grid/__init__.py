"""Interactive cell editing for multi-entity comparison grids."""

__version__ = "0.3.0"
