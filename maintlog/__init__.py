"""Maintenance log for hospital refrigeration/HVAC equipment backed by a remote spreadsheet."""

__version__ = "0.1.0"
