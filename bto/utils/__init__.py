"""
================================================================================
UTILS MODULE - Shared Utilities and Helpers
================================================================================

Shared infrastructure used across all application components.

Exported Functions:
    Logging:
        - setup_logging() - Initialize logging infrastructure
        - set_run_context(context) - Set execution context
        - logger - Main application logger

    Configuration:
        - load_config() - Load configuration from config.json
        - resolve_data_dir() - Data directory for the flat record files
        - get_status() - Read application status
        - update_status() - Update application status
        - mark_data_changed() - Flag data modifications
        - mark_load_complete() - Record a finished load

    Identifiers and dates:
        - new_id(kind) - Unique project/application/enquiry ids
        - parse_date() / format_date() - DD-MM-YYYY literals

Usage:
    from bto.utils import logger, load_config
    from bto.utils.constants import MARRIED_MIN_AGE
================================================================================
"""

from .logger import setup_logging, set_run_context, logger
from .config import (
    load_config,
    resolve_data_dir,
    get_status,
    update_status,
    mark_data_changed,
    mark_load_complete,
)
from .ids import new_id
from .dates import parse_date, format_date

__all__ = [
    'setup_logging',
    'set_run_context',
    'logger',
    'load_config',
    'resolve_data_dir',
    'get_status',
    'update_status',
    'mark_data_changed',
    'mark_load_complete',
    'new_id',
    'parse_date',
    'format_date',
]
