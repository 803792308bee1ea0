"""
================================================================================
BTO PACKAGE - Housing Application Tracker
================================================================================

Top-level package containing all application modules organized by function.

Package Structure:
    bto/core/        - Entities, eligibility, lifecycle, store, role workflows
    bto/processors/  - Flat file codecs, loader/linker, writer, reports
    bto/utils/       - Shared utilities (logging, config, constants, ids)

Last Modified: October 2026
================================================================================
"""

__version__ = "2026.1"
