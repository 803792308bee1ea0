"""
================================================================================
PYTEST CONFIGURATION
================================================================================

Pytest configuration and shared fixtures for the entire test suite.

Global Setup:
    - TEST_MODE=1 in the environment
    - Working directory moved to a fresh temp folder BEFORE any bto module
      is imported, so constants.BASE_DIR (and with it configs/, data/ and
      outputs/) never points at the real project
    - Logging switched to the 'test' run context

Fixtures:
    - world: small in-memory dataset (one manager, one officer, three
      applicants, three projects) with an engine bound to it
    - data_dir: empty data directory under pytest's tmp_path
================================================================================
"""
import os
import sys
import json
import shutil
import tempfile
from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

# Ensure project root is on sys.path so cli.py imports without installation
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

_TEST_BASE_DIR = None
_ORIGINAL_CWD = None


def pytest_configure(config):
    """
    Hook called before test collection starts.
    Moves into an isolated base directory before test modules are imported.
    """
    global _TEST_BASE_DIR, _ORIGINAL_CWD

    os.environ['TEST_MODE'] = '1'

    _TEST_BASE_DIR = Path(tempfile.mkdtemp(prefix="bto_tracker_test_"))
    config_dir = _TEST_BASE_DIR / 'configs'
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / 'config.json').write_text(json.dumps({
        "general": {"create_data_backups": True},
        "storage": {"data_dir": "data", "lock_timeout_seconds": 2},
        "logging": {"level": "INFO"},
    }, indent=4))

    _ORIGINAL_CWD = os.getcwd()
    os.chdir(_TEST_BASE_DIR)

    from bto.utils.logger import set_run_context
    set_run_context('test')


def pytest_unconfigure(config):
    """
    Hook called after all tests finish.
    Restore original directory and clean up.
    """
    if _ORIGINAL_CWD:
        os.chdir(_ORIGINAL_CWD)

    if _TEST_BASE_DIR and _TEST_BASE_DIR.exists():
        shutil.rmtree(_TEST_BASE_DIR, ignore_errors=True)

    os.environ.pop('TEST_MODE', None)


# ---------------------------------------------------------------------------
# Dataset fixtures
# ---------------------------------------------------------------------------

MANAGER_ID = 'T7654321B'
OFFICER_ID = 'S2222222B'
MARRIED_ID = 'S1111111A'
SINGLE_ID = 'S3333333C'
YOUNG_ID = 'S4444444D'


def build_world():
    from bto.core.database import DatabaseManager
    from bto.core.engine import BTOEngine
    from bto.core.models import (
        MaritalStatus,
        RoomType,
        new_applicant,
        new_manager,
        new_officer,
        new_project,
    )

    db = DatabaseManager()
    manager = new_manager(MANAGER_ID, 'Mary', 45, MaritalStatus.MARRIED)
    officer = new_officer(OFFICER_ID, 'Oscar', 30, MaritalStatus.MARRIED)
    married = new_applicant(MARRIED_ID, 'Alice', 25, MaritalStatus.MARRIED)
    single = new_applicant(SINGLE_ID, 'Ben', 36, MaritalStatus.SINGLE)
    young = new_applicant(YOUNG_ID, 'Cara', 30, MaritalStatus.SINGLE)
    for user in (manager, officer, married, single, young):
        db.add_user(user)

    two_room = new_project('Acacia Breeze', 2, 'Yishun', RoomType.TWO_ROOM, 350000.0,
                           date(2026, 1, 1), date(2026, 12, 31), 3, [officer], True, manager)
    three_room = new_project('Birch Grove', 1, 'Tampines', RoomType.THREE_ROOM, 480000.0,
                             date(2027, 3, 1), date(2027, 6, 30), 2, [], True, manager)
    hidden = new_project('Cedar Court', 5, 'Bedok', RoomType.THREE_ROOM, 500000.0,
                         date(2027, 8, 1), date(2027, 9, 30), 1, [], False, manager)
    for project in (two_room, three_room, hidden):
        db.add_project(project)

    return SimpleNamespace(
        db=db,
        engine=BTOEngine(db),
        manager=manager,
        officer=officer,
        married=married,
        single=single,
        young=young,
        two_room=two_room,
        three_room=three_room,
        hidden=hidden,
    )


@pytest.fixture
def world():
    return build_world()


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / 'data'
    path.mkdir()
    return path
