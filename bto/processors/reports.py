"""
Booking reports.

Tabulates applicants whose flat has been booked, optionally filtered by
room type or marital status, and exports the table as CSV.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from bto.core.database import DatabaseManager
from bto.core.models import MaritalStatus, RoomType

logger = logging.getLogger("bto_tracker")

REPORT_COLUMNS = ['Applicant Name', 'NRIC', 'Project Name', 'Room Type', 'Age', 'Marital Status']


def _coerce_filter_value(filter_by: Optional[str], value):
    if filter_by is None or not isinstance(value, str):
        return value
    if filter_by.lower() == 'roomtype':
        return RoomType(value.upper())
    if filter_by.lower() == 'marital status':
        return MaritalStatus(value.upper())
    return value


def booking_report(database: DatabaseManager, filter_by: Optional[str] = None,
                   value=None) -> pd.DataFrame:
    """
    One row per applicant with a booked flat.

    Args:
        filter_by: None, 'RoomType' or 'Marital Status'
        value: enum member or its name

    Raises:
        ValueError: unknown filter or filter value
    """
    users = database.receipt_ready_applicants(filter_by, _coerce_filter_value(filter_by, value))
    if users is None:
        raise ValueError(f"Unknown report filter: {filter_by}")

    rows = []
    for user in users:
        project = user.applicant.applied_project
        rows.append({
            'Applicant Name': user.name,
            'NRIC': user.user_id,
            'Project Name': project.name if project else '',
            'Room Type': project.room_type.value if project else '',
            'Age': user.age,
            'Marital Status': user.marital_status.value,
        })
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def export_booking_report(database: DatabaseManager, path: Optional[Path] = None,
                          filter_by: Optional[str] = None, value=None) -> Path:
    """Write the booking report as CSV; defaults to outputs/reports/."""
    if path is None:
        from bto.utils.constants import REPORT_DIR

        stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        path = REPORT_DIR / f'BOOKING_REPORT_{stamp}.csv'
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = booking_report(database, filter_by, value)
    df.to_csv(path, index=False)
    logger.info(f"Booking report with {len(df)} rows written to {path}")
    return path
