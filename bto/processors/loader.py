"""
================================================================================
LOADER - Two-Phase Loader/Linker
================================================================================

Rebuilds the object graph from the flat data files.

Persisted records reference each other by bare identifiers, and a record may
name an entity that has not been built yet (an officer lists joined projects
before any project exists). Loading therefore runs in two phases over records
kept in memory:

    Phase 1 (construct) - every line is parsed once into a record; users are
                          built with scalar fields only.
    Phase 2 (link)      - identifiers are resolved through the
                          DatabaseManager's lookups and attached.

Load Order:
    1. Users         construct (applicants, officers, managers)
    2. Projects      construct + link manager / officers
    3. Applications  construct + link user / project
    4. Enquiries     construct + link filer / project
    5. Users         link applied project, applications, officer lists

Error Handling:
    - Malformed line        -> skipped, logged, load continues
    - Dangling reference    -> left absent, logged
    - Missing required link -> application / enquiry dropped, logged
    - Unreadable file       -> recorded as unavailable (distinct from empty)
================================================================================
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from bto.core.database import DatabaseManager
from bto.core.lifecycle import set_status
from bto.core.models import (
    User,
    is_manager,
    is_officer,
    new_applicant,
    new_application,
    new_enquiry,
    new_manager,
    new_officer,
    new_project,
)
from bto.processors.records import (
    RecordError,
    UserRecord,
    parse_applicant,
    parse_application,
    parse_enquiry,
    parse_manager,
    parse_officer,
    parse_project,
)
from bto.utils.constants import (
    APPLICANT_FILE,
    APPLICATION_FILE,
    ENQUIRY_FILE,
    MANAGER_FILE,
    OFFICER_FILE,
    PROJECT_FILE,
)

logger = logging.getLogger("bto_tracker")


@dataclass
class LoadReport:
    """What a load produced and what it had to leave out."""

    loaded: Dict[str, int] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    dangling: List[str] = field(default_factory=list)
    unavailable: List[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not (self.skipped or self.dangling or self.unavailable)


def read_records(path: Path) -> Optional[List[Tuple[int, str]]]:
    """
    Read the non-blank lines of a data file.

    Returns:
        list of (line number, line), or None when the file cannot be read
        (an empty file gives an empty list)
    """
    if not path.exists():
        logger.warning(f"Data file not found: {path}")
        return None
    try:
        with open(path, 'r', encoding='utf-8') as f:
            lines = f.read().splitlines()
    except OSError as e:
        logger.error(f"Error reading data file {path}: {e}")
        return None
    return [(number, line) for number, line in enumerate(lines, start=1) if line.strip()]


class DataLoader:
    """
    Loads the six data files of a data directory into a DatabaseManager.

    Usage:
        loader = DataLoader(data_dir)
        database = loader.load()
        if not loader.report.clean:
            ...
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.report = LoadReport()
        self._user_records: List[Tuple[str, UserRecord]] = []

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------
    def _parse_file(self, file_name: str, parser: Callable) -> list:
        lines = read_records(self.data_dir / file_name)
        if lines is None:
            self.report.unavailable.append(file_name)
            return []
        records = []
        for number, line in lines:
            try:
                records.append(parser(line))
            except RecordError as e:
                self._skip(file_name, number, str(e))
        return records

    def _skip(self, file_name: str, number, reason: str):
        message = f"{file_name}:{number}: {reason}"
        logger.warning(f"Skipping malformed record {message}")
        self.report.skipped.append(message)

    def _dangling(self, owner: str, label: str, ref_id: str):
        message = f"{owner} -> {label} {ref_id}"
        logger.warning(f"Unresolved reference {message}")
        self.report.dangling.append(message)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def load(self) -> DatabaseManager:
        database = DatabaseManager()
        self.report = LoadReport()
        self._user_records = []

        self._construct_users(database)
        self._load_projects(database)
        self._load_applications(database)
        self._load_enquiries(database)
        self._link_users(database)

        self.report.loaded = {
            'users': len(database.users),
            'projects': len(database.projects),
            'applications': len(database.applications),
            'enquiries': len(database.enquiries),
        }
        logger.info(f"Loaded {database!r} from {self.data_dir}")
        if self.report.skipped or self.report.dangling:
            logger.warning(f"Load finished with {len(self.report.skipped)} skipped records "
                           f"and {len(self.report.dangling)} unresolved references")
        return database

    # ------------------------------------------------------------------
    # Phase 1: users
    # ------------------------------------------------------------------
    def _construct_users(self, database: DatabaseManager):
        sources = [
            (APPLICANT_FILE, parse_applicant, new_applicant),
            (OFFICER_FILE, parse_officer, new_officer),
            (MANAGER_FILE, parse_manager, None),
        ]
        for file_name, parser, factory in sources:
            for record in self._parse_file(file_name, parser):
                if factory is None:
                    user = new_manager(record.user_id, record.name, record.age,
                                       record.marital_status, record.password)
                else:
                    user = factory(record.user_id, record.name, record.age,
                                   record.marital_status, record.password,
                                   record.can_apply, record.is_withdrawing,
                                   record.receipt_ready)
                if user is None:
                    self._skip(file_name, record.user_id, "invalid NRIC or age")
                    continue
                if database.get_user(user.user_id) is not None:
                    self._skip(file_name, record.user_id, "duplicate user id")
                    continue
                database.add_user(user)
                if factory is not None:
                    self._user_records.append((file_name, record))

    # ------------------------------------------------------------------
    # Projects, applications, enquiries (construct + link)
    # ------------------------------------------------------------------
    def _load_projects(self, database: DatabaseManager):
        for record in self._parse_file(PROJECT_FILE, parse_project):
            owner = f"project {record.project_id}"
            if database.get_project(record.project_id) is not None:
                self._skip(PROJECT_FILE, record.project_id, "duplicate project id")
                continue

            manager = database.get_user(record.manager_id)
            if record.manager_id and not is_manager(manager):
                self._dangling(owner, 'manager', record.manager_id)
                manager = None

            officers = []
            for officer_id in record.officer_ids:
                officer = database.get_user(officer_id)
                if not is_officer(officer):
                    self._dangling(owner, 'officer', officer_id)
                    continue
                officers.append(officer)

            database.add_project(new_project(
                record.name, record.unit_count, record.neighbourhood, record.room_type,
                record.selling_price, record.application_start, record.application_end,
                record.officer_slots, officers, record.visible, manager,
                project_id=record.project_id,
            ))

    def _load_applications(self, database: DatabaseManager):
        for record in self._parse_file(APPLICATION_FILE, parse_application):
            owner = f"application {record.application_id}"
            user = database.get_user(record.user_id)
            project = database.get_project(record.project_id)
            if user is None or project is None:
                if user is None:
                    self._dangling(owner, 'user', record.user_id)
                if project is None:
                    self._dangling(owner, 'project', record.project_id)
                self._skip(APPLICATION_FILE, record.application_id, "missing user or project")
                continue

            application = new_application(user, project, record.kind,
                                          application_id=record.application_id)
            if not set_status(application, record.status):
                logger.warning(f"{owner}: status {record.status.value} is not valid for "
                               f"{record.kind.value}; keeping {application.status.value}")
            database.add_application(application)

    def _load_enquiries(self, database: DatabaseManager):
        for record in self._parse_file(ENQUIRY_FILE, parse_enquiry):
            owner = f"enquiry {record.enquiry_id}"
            filer = database.get_user(record.filer_id)
            project = database.get_project(record.project_id)
            if filer is None or filer.applicant is None or project is None:
                if filer is None or filer.applicant is None:
                    self._dangling(owner, 'filer', record.filer_id)
                if project is None:
                    self._dangling(owner, 'project', record.project_id)
                self._skip(ENQUIRY_FILE, record.enquiry_id, "missing filer or project")
                continue
            database.add_enquiry(new_enquiry(filer, project, record.question, record.reply,
                                             enquiry_id=record.enquiry_id))

    # ------------------------------------------------------------------
    # Phase 2: users
    # ------------------------------------------------------------------
    def _resolve_project(self, database, owner, project_id):
        if not project_id:
            return None
        project = database.get_project(project_id)
        if project is None:
            self._dangling(owner, 'project', project_id)
        return project

    def _resolve_application(self, database, owner, application_id):
        if not application_id:
            return None
        application = database.get_application(application_id)
        if application is None:
            self._dangling(owner, 'application', application_id)
        return application

    def _link_users(self, database: DatabaseManager):
        for file_name, record in self._user_records:
            user: User = database.get_user(record.user_id)
            owner = f"user {record.user_id}"
            profile = user.applicant

            # Flags were restored in phase 1; assign links without touching them
            profile.applied_project = self._resolve_project(
                database, owner, record.applied_project_id)
            profile.project_application = self._resolve_application(
                database, owner, record.project_application_id)
            profile.withdrawal_application = self._resolve_application(
                database, owner, record.withdrawal_application_id)

            if file_name != OFFICER_FILE:
                continue
            officer = user.officer
            if record.joined_project_ids is not None:
                officer.joined_projects = [
                    project for project in (self._resolve_project(database, owner, pid)
                                            for pid in record.joined_project_ids)
                    if project is not None
                ]
            if record.registered_project_ids is not None:
                officer.registered_projects = [
                    project for project in (self._resolve_project(database, owner, pid)
                                            for pid in record.registered_project_ids)
                    if project is not None
                ]
            if record.registration_ids is not None:
                officer.project_registrations = [
                    application for application in (
                        self._resolve_application(database, owner, aid)
                        for aid in record.registration_ids)
                    if application is not None
                ]
            officer.rebuild_prohibited()
            if profile.applied_project is not None and not profile.can_apply:
                officer.prohibit(profile.applied_project)


def load_database(data_dir: Path) -> Tuple[DatabaseManager, LoadReport]:
    """Convenience wrapper returning the store and its load report."""
    loader = DataLoader(data_dir)
    database = loader.load()
    return database, loader.report
