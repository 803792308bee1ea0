"""
================================================================================
CONSTANTS - System-Wide Configuration Values
================================================================================

Centralized repository for all hardcoded constants used throughout the
BTO application tracker. Organized by functional category.

Constant Categories:
    1. File Paths - Directory and data file locations
    2. Record Format - Separators and field counts of the flat data files
    3. Eligibility Rules - Housing board age and slot rules
    4. Identifiers - Kind tags embedded in generated ids

Key Constants:

    Eligibility:
        MARRIED_MIN_AGE = 21
            Married applicants may apply for any room type from this age

        SINGLE_MIN_AGE = 35
            Single applicants may apply (2-Room only) from this age

        MAX_OFFICER_SLOTS = 10
            Upper bound for officers administering one project

    Record Format:
        FIELD_SEPARATOR = ', '
            Written between fields; readers split on ',' and trim

        LIST_SEPARATOR = '; '
            Written between ids inside a list field; readers split on ';'

File Path Constants:
    All paths are relative to BASE_DIR (current working directory)
    Supports monkeypatching for test isolation

    Example:
        LOG_DIR = BASE_DIR / 'outputs' / 'logs'
        CONFIG_FILE = BASE_DIR / 'configs' / 'config.json'

Note:
    Values in this file are STATIC. For runtime-configurable settings,
    use config.json via bto.utils.config module.
================================================================================
"""

from pathlib import Path

# ==========================================
# FILE PATHS
# ==========================================
BASE_DIR = Path.cwd()
LOG_DIR = BASE_DIR / 'outputs' / 'logs'
REPORT_DIR = BASE_DIR / 'outputs' / 'reports'
CONFIG_FILE = BASE_DIR / 'configs' / 'config.json'
STATUS_FILE = BASE_DIR / 'configs' / 'status.json'

APPLICANT_FILE = 'ApplicantFile.txt'
OFFICER_FILE = 'HDBOfficerFile.txt'
MANAGER_FILE = 'HDBManagerFile.txt'
PROJECT_FILE = 'ProjectFile.txt'
APPLICATION_FILE = 'ApplicationFile.txt'
ENQUIRY_FILE = 'EnquiryFile.txt'

# Save order matters only for readability of backups
DATA_FILES = [
    PROJECT_FILE,
    ENQUIRY_FILE,
    APPLICATION_FILE,
    APPLICANT_FILE,
    OFFICER_FILE,
    MANAGER_FILE,
]

# ==========================================
# RECORD FORMAT
# ==========================================
FIELD_SEPARATOR = ', '
LIST_SEPARATOR = '; '
DATE_FORMAT = '%d-%m-%Y'  # DD-MM-YYYY

APPLICANT_FIELDS = 11
OFFICER_FIELDS = 14
MANAGER_FIELDS = 5
PROJECT_FIELDS = 12
APPLICATION_FIELDS = 5
ENQUIRY_FIELDS = 5

# ==========================================
# ELIGIBILITY RULES
# ==========================================
MARRIED_MIN_AGE = 21
SINGLE_MIN_AGE = 35
MIN_OFFICER_SLOTS = 0
MAX_OFFICER_SLOTS = 10
DEFAULT_PASSWORD = 'password'

# NRIC: S/T prefix, 7 digits, trailing letter
NRIC_LENGTH = 9
NRIC_PREFIXES = ('S', 'T')

# ==========================================
# IDENTIFIERS
# ==========================================
ID_KINDS = {
    'application': 'APPL',
    'enquiry': 'ENQU',
    'project': 'PROJ',
}

# ==========================================
# STORAGE
# ==========================================
LOCK_TIMEOUT_SECONDS = 10
