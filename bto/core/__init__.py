"""
================================================================================
CORE MODULE - Business Logic
================================================================================

Entities, rules and workflows of the housing application tracker.

Exported Classes:
    DatabaseManager - Referential store with role-scoped views
    BTOEngine - Role workflows (apply, withdraw, register, book, enquire)

Exported Functions:
    Lifecycle:
        - update_status - Guarded status change with cascades
        - book_flat - Consume a unit and issue the receipt
        - get_receipt - Receipt text while a booking stands

Usage:
    from bto.core import DatabaseManager, BTOEngine
    from bto.core.models import ApplicationStatus
================================================================================
"""

from bto.core.database import DatabaseManager
from bto.core.engine import BTOEngine
from bto.core.lifecycle import book_flat, get_receipt, update_status

__all__ = [
    'DatabaseManager',
    'BTOEngine',
    'update_status',
    'book_flat',
    'get_receipt',
]
