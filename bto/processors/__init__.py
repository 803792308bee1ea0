"""Persistence and reporting

Import from bto.processors to load a data directory into a DatabaseManager,
save it back, or export the booking report.
"""

from bto.processors.loader import DataLoader, LoadReport, load_database, read_records
from bto.processors.writer import DataWriter
from bto.processors.reports import booking_report, export_booking_report

__all__ = [
    "DataLoader",
    "LoadReport",
    "load_database",
    "read_records",
    "DataWriter",
    "booking_report",
    "export_booking_report",
]
