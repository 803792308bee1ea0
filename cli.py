#!/usr/bin/env python3
"""
================================================================================
CLI - Command Line Interface
================================================================================

Provides command-line access to the housing application tracker:
    - Browsing projects, applications and enquiries per role
    - Applying, withdrawing, registering and booking
    - Approving / rejecting applications
    - Booking reports

Every acting command authenticates with --user / --password (prompted when
the password is omitted), loads the data directory, runs one workflow and
saves the data directory when the workflow succeeds.

Usage:
    python cli.py [command] [options]
    python cli.py --help

Last Modified: October 2026
================================================================================
"""

import sys
import argparse
from getpass import getpass
from pathlib import Path

from bto.core.engine import BTOEngine
from bto.core.database import filter_projects, sort_projects
from bto.core.models import ApplicationStatus, is_manager, is_officer
from bto.processors.loader import DataLoader
from bto.processors.reports import export_booking_report
from bto.processors.writer import DataWriter
from bto.utils.config import get_status, load_config, mark_load_complete, resolve_data_dir
from bto.utils.logger import get_run_context, set_run_context


# ANSI color codes
class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


def print_header(text):
    """Print formatted header"""
    print(f"\n{Colors.BOLD}{Colors.BLUE}{'=' * 70}{Colors.ENDC}")
    print(f"{Colors.BOLD}{Colors.CYAN}{text:^70}{Colors.ENDC}")
    print(f"{Colors.BOLD}{Colors.BLUE}{'=' * 70}{Colors.ENDC}\n")

def print_success(text):
    """Print success message"""
    print(f"{Colors.GREEN}✓{Colors.ENDC} {text}")

def print_error(text):
    """Print error message"""
    print(f"{Colors.RED}✗{Colors.ENDC} {text}")

def print_info(text):
    """Print info message"""
    print(f"{Colors.CYAN}ℹ{Colors.ENDC} {text}")


# ==========================================
# SESSION HELPERS
# ==========================================

class Session:
    """Config, data directory and the loaded store for one command."""

    def __init__(self, args):
        self.config = load_config()
        self.data_dir = Path(args.data_dir) if args.data_dir else resolve_data_dir(self.config)
        loader = DataLoader(self.data_dir)
        self.db = loader.load()
        self.report = loader.report
        mark_load_complete(not self.report.unavailable)
        for file_name in self.report.unavailable:
            print(f"{Colors.YELLOW}⚠{Colors.ENDC} No data available from {file_name}")
        self.engine = BTOEngine(self.db)
        self.user = None

    def login(self, args):
        password = args.password if args.password is not None else getpass('Password: ')
        self.user = self.engine.authenticate(args.user, password)
        if self.user is None:
            print_error("Invalid NRIC or password")
        return self.user

    def save(self):
        storage = self.config['storage']
        writer = DataWriter(
            self.data_dir,
            lock_timeout=storage.get('lock_timeout_seconds', 10),
            create_backups=self.config['general'].get('create_data_backups', True),
        )
        writer.save(self.db)


def _open(args, role_check=None, role_label=''):
    session = Session(args)
    if session.login(args) is None:
        return None
    if role_check is not None and not role_check(session.user):
        print_error(f"This command is only available to {role_label}")
        return None
    return session


def _print_project(project):
    officers = ', '.join(o.name for o in project.officers) or '-'
    print(f"{Colors.BOLD}{project.name}{Colors.ENDC} [{project.project_id}]")
    print(f"  Neighbourhood:   {project.neighbourhood}")
    print(f"  Room Type:       {project.room_type.value}")
    print(f"  Units Left:      {project.unit_count}")
    print(f"  Price:           {project.selling_price:,.2f}")
    print(f"  Window:          {project.application_start:%d-%m-%Y} to "
          f"{project.application_end:%d-%m-%Y}")
    print(f"  Manager:         {project.manager.name if project.manager else '-'}")
    print(f"  Officers:        {officers} ({len(project.officers)}/{project.officer_slots})")
    print(f"  Visible:         {'yes' if project.visible else 'no'}")


def _print_application(application):
    print(f"{application.application_id}  {application.kind.value:<24} "
          f"{application.status.value:<13} {application.user.user_id}  {application.project.name}")


def _print_enquiry(enquiry):
    print(f"{Colors.BOLD}{enquiry.enquiry_id}{Colors.ENDC} ({enquiry.project.name}, "
          f"from {enquiry.filer.user_id})")
    print(f"  Q: {enquiry.question}")
    print(f"  A: {enquiry.reply if enquiry.is_replied else '(no reply yet)'}")


# ==========================================
# COMMANDS
# ==========================================

def cmd_info(args):
    """Display system information"""
    print_header("SYSTEM INFORMATION")
    from bto.utils.constants import BASE_DIR, CONFIG_FILE, DATA_FILES, LOG_DIR

    config = load_config()
    data_dir = Path(args.data_dir) if args.data_dir else resolve_data_dir(config)

    print(f"{Colors.BOLD}Paths:{Colors.ENDC}")
    print(f"  Base Directory:  {BASE_DIR}")
    print(f"  Config:          {CONFIG_FILE} {'✓' if CONFIG_FILE.exists() else '✗'}")
    print(f"  Logs:            {LOG_DIR}")
    print(f"  Data Directory:  {data_dir}")
    for file_name in DATA_FILES:
        print(f"    {file_name:<22} {'✓' if (data_dir / file_name).exists() else '✗'}")

    print(f"\n{Colors.BOLD}Configuration:{Colors.ENDC}")
    print(f"  Backups:         {config['general']['create_data_backups']}")
    print(f"  Lock Timeout:    {config['storage']['lock_timeout_seconds']}s")
    print(f"  Log Level:       {config['logging']['level']}")
    print_success("System information displayed")
    return True


def cmd_status(args):
    """Show load/save timestamps"""
    status = get_status()
    print(f"  Last Data Change: {status.get('last_data_change') or 'Never'}")
    print(f"  Last Load:        {status.get('last_load') or 'Never'}")
    print(f"  Last Load OK:     {status.get('last_load_success', False)}")
    return True


def cmd_projects(args):
    """List the projects the user may see"""
    session = _open(args)
    if session is None:
        return False
    projects = session.db.projects_for(session.user)
    if args.filter:
        projects = filter_projects(projects, args.filter[0], args.filter[1])
    projects = sort_projects(projects, ascending=not args.desc)
    if not projects:
        print_info("No projects to show")
    for project in projects:
        _print_project(project)
    return True


def cmd_applications(args):
    """List applications the user handles (or their own with --mine)"""
    session = _open(args)
    if session is None:
        return False
    user = session.user
    if args.mine or not (is_manager(user) or is_officer(user)):
        profile = user.applicant
        if profile is None:
            print_info("Managers do not file applications")
            return True
        applications = [a for a in (profile.project_application, profile.withdrawal_application)
                        if a is not None]
        if is_officer(user):
            applications += user.officer.project_registrations
    else:
        applications = session.db.applications_for(user)
    if not applications:
        print_info("No applications to show")
    for application in applications:
        _print_application(application)
    return True


def cmd_enquiries(args):
    """List enquiries visible to the user"""
    session = _open(args)
    if session is None:
        return False
    enquiries = session.db.enquiries_for(session.user, as_applicant=args.mine)
    if not enquiries:
        print_info("No enquiries to show")
    for enquiry in enquiries:
        _print_enquiry(enquiry)
    return True


def cmd_apply(args):
    """Apply for a project"""
    session = _open(args, lambda u: u.applicant is not None, 'applicants and officers')
    if session is None:
        return False
    project = session.db.get_project(args.project)
    if project is None:
        print_error(f"Unknown project: {args.project}")
        return False
    application = session.engine.apply_for_project(session.user, project)
    if application is None:
        print_error(f"Cannot apply for {project.name}")
        return False
    session.save()
    print_success(f"Applied for {project.name} ({application.application_id})")
    return True


def cmd_withdraw(args):
    """Request withdrawal from the applied project"""
    session = _open(args, lambda u: u.applicant is not None, 'applicants and officers')
    if session is None:
        return False
    application = session.engine.submit_withdrawal(session.user)
    if application is None:
        print_error("Nothing to withdraw from, or a withdrawal is already pending")
        return False
    session.save()
    print_success(f"Withdrawal requested ({application.application_id})")
    return True


def cmd_register(args):
    """Register to administer a project"""
    session = _open(args, is_officer, 'officers')
    if session is None:
        return False
    project = session.db.get_project(args.project)
    if project is None:
        print_error(f"Unknown project: {args.project}")
        return False
    registration = session.engine.register_for_project(session.user, project)
    if registration is None:
        print_error(f"Cannot register for {project.name}")
        return False
    session.save()
    print_success(f"Registered for {project.name} ({registration.application_id})")
    return True


def cmd_decide(args):
    """Approve or reject a pending application"""
    session = _open(args, is_manager, 'managers')
    if session is None:
        return False
    application = session.db.get_application(args.application)
    if application is None:
        print_error(f"Unknown application: {args.application}")
        return False
    status = ApplicationStatus(args.status)
    if not session.engine.update_status(session.user, application, status):
        print_error(f"Cannot mark {application.application_id} {status.value}: "
                    f"not a pending application of your projects, or not allowed for "
                    f"{application.kind.value}")
        return False
    session.save()
    print_success(f"{application.application_id} is now {status.value}")
    return True


def cmd_book(args):
    """Book a flat for a successful applicant"""
    session = _open(args, is_officer, 'officers')
    if session is None:
        return False
    application = session.db.get_application(args.application)
    if application is None:
        print_error(f"Unknown application: {args.application}")
        return False
    if not session.engine.book_flat(session.user, application):
        print_error(f"Could not book a flat for {application.application_id}")
        return False
    session.save()
    print_success(f"Booked {application.project.name} for {application.user.name}")
    print(application.user.applicant.receipt)
    return True


def cmd_receipt(args):
    """Show the booking receipt"""
    session = _open(args, lambda u: u.applicant is not None, 'applicants and officers')
    if session is None:
        return False
    receipt = session.engine.get_receipt(session.user)
    if receipt is None:
        print_info("No receipt available")
        return False
    print(receipt)
    return True


def cmd_enquire(args):
    """File an enquiry about a project"""
    session = _open(args, lambda u: u.applicant is not None, 'applicants and officers')
    if session is None:
        return False
    project = session.db.get_project(args.project)
    if project is None:
        print_error(f"Unknown project: {args.project}")
        return False
    enquiry = session.engine.add_enquiry(session.user, project, args.question)
    if enquiry is None:
        print_error("Enquiry not filed")
        return False
    session.save()
    print_success(f"Enquiry filed ({enquiry.enquiry_id})")
    return True


def cmd_reply(args):
    """Reply to an enquiry"""
    session = _open(args, lambda u: is_manager(u) or is_officer(u), 'managers and officers')
    if session is None:
        return False
    enquiry = session.db.get_enquiry(args.enquiry)
    if enquiry is None:
        print_error(f"Unknown enquiry: {args.enquiry}")
        return False
    if not session.engine.reply_to_enquiry(session.user, enquiry, args.text):
        print_error(f"Cannot reply to {enquiry.enquiry_id}")
        return False
    session.save()
    print_success(f"Replied to {enquiry.enquiry_id}")
    return True


def cmd_report(args):
    """Export the booking report as CSV"""
    session = _open(args, is_manager, 'managers')
    if session is None:
        return False
    try:
        path = export_booking_report(session.db, args.output, args.filter, args.value)
    except ValueError as e:
        print_error(str(e))
        return False
    print_success(f"Booking report written to {path}")
    return True


# ==========================================
# ENTRY POINT
# ==========================================

def build_parser():
    parser = argparse.ArgumentParser(
        description='BTO Application Tracker',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s info
  %(prog)s projects --user S1234567A --password password
  %(prog)s apply --user S1234567A --project 1a2b3c4-PROJ-...
  %(prog)s decide --user T7654321B --application ... --status SUCCESSFUL
  %(prog)s report --user T7654321B --filter roomtype --value TWO_ROOM
        '''
    )
    parser.add_argument('--data-dir', help='Override storage.data_dir from config.json')

    auth = argparse.ArgumentParser(add_help=False)
    auth.add_argument('--user', required=True, help='NRIC of the acting user')
    auth.add_argument('--password', help='Password (prompted when omitted)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('info', help='Display system information').set_defaults(func=cmd_info)
    subparsers.add_parser('status', help='Show load/save status').set_defaults(func=cmd_status)

    p = subparsers.add_parser('projects', parents=[auth], help='List projects')
    p.add_argument('--filter', nargs=2, metavar=('ATTRIBUTE', 'VALUE'),
                   help='Name, Neighbourhood or RoomType')
    p.add_argument('--desc', action='store_true', help='Sort names descending')
    p.set_defaults(func=cmd_projects)

    p = subparsers.add_parser('applications', parents=[auth], help='List applications')
    p.add_argument('--mine', action='store_true', help='Own applications only')
    p.set_defaults(func=cmd_applications)

    p = subparsers.add_parser('enquiries', parents=[auth], help='List enquiries')
    p.add_argument('--mine', action='store_true', help='Own enquiries only')
    p.set_defaults(func=cmd_enquiries)

    p = subparsers.add_parser('apply', parents=[auth], help='Apply for a project')
    p.add_argument('--project', required=True)
    p.set_defaults(func=cmd_apply)

    p = subparsers.add_parser('withdraw', parents=[auth], help='Request withdrawal')
    p.set_defaults(func=cmd_withdraw)

    p = subparsers.add_parser('register', parents=[auth], help='Register to administer a project')
    p.add_argument('--project', required=True)
    p.set_defaults(func=cmd_register)

    p = subparsers.add_parser('decide', parents=[auth], help='Approve or reject an application')
    p.add_argument('--application', required=True)
    p.add_argument('--status', required=True, choices=['SUCCESSFUL', 'UNSUCCESSFUL'])
    p.set_defaults(func=cmd_decide)

    p = subparsers.add_parser('book', parents=[auth], help='Book a flat')
    p.add_argument('--application', required=True)
    p.set_defaults(func=cmd_book)

    p = subparsers.add_parser('receipt', parents=[auth], help='Show booking receipt')
    p.set_defaults(func=cmd_receipt)

    p = subparsers.add_parser('enquire', parents=[auth], help='File an enquiry')
    p.add_argument('--project', required=True)
    p.add_argument('--question', required=True)
    p.set_defaults(func=cmd_enquire)

    p = subparsers.add_parser('reply', parents=[auth], help='Reply to an enquiry')
    p.add_argument('--enquiry', required=True)
    p.add_argument('--text', required=True)
    p.set_defaults(func=cmd_reply)

    p = subparsers.add_parser('report', parents=[auth], help='Export booking report')
    p.add_argument('--filter', choices=['roomtype', 'marital status'])
    p.add_argument('--value', help='TWO_ROOM / THREE_ROOM or SINGLE / MARRIED')
    p.add_argument('--output', type=Path, help='CSV path (default outputs/reports/)')
    p.set_defaults(func=cmd_report)

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    if get_run_context() == 'imported':
        set_run_context('cli', load_config()['logging']['level'])

    try:
        success = args.func(args)
        return 0 if success else 1
    except KeyboardInterrupt:
        print_info("\nOperation cancelled by user")
        return 130
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
