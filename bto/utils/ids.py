"""Identifier generation for projects, applications and enquiries."""

import uuid

from bto.utils.constants import ID_KINDS


def new_id(kind: str) -> str:
    """
    Generate a process-wide unique identifier.

    The kind tag replaces the first hyphen of a UUID4 so ids read as
    ``<rand7>-<KIND4>-<rand>``, e.g. ``3f2a9c1-APPL-4e1b-9a7c-...``.

    Args:
        kind: 'application', 'enquiry' or 'project'

    Raises:
        ValueError: unknown kind
    """
    try:
        tag = ID_KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown id kind: {kind}") from None
    raw = str(uuid.uuid4())
    return f"{raw[:7]}-{tag}{raw[8:]}"
