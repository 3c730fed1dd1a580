"""ID Generation.

ULID-based identifiers for component nodes, screens and projects.

- Node ids carry the lowercase component kind as prefix (``button_01HV...``)
  so logs and generated file names stay readable.
- Screens and projects use fixed prefixes (``screen_*``, ``proj_*``).
- ULIDs are k-sortable, so ids minted later sort after earlier ones.
"""

from datetime import datetime
from typing import NewType
from ulid import ULID

NodeID = NewType("NodeID", str)
"""Component node identifier"""

ScreenID = NewType("ScreenID", str)
"""Screen identifier"""

ProjectID = NewType("ProjectID", str)
"""Project identifier"""


class Prefix:
    """ID prefix constants."""

    SCREEN = "screen"
    PROJECT = "proj"


def generate_raw() -> str:
    """Generate a ULID without prefix."""
    return str(ULID())


def generate_prefixed(prefix: str) -> str:
    """Generate a ULID with a type prefix."""
    return f"{prefix}_{generate_raw()}"


def new_node_id(kind: str) -> NodeID:
    """Mint a node id for a component of the given kind."""
    return NodeID(generate_prefixed(kind.lower()))


def new_screen_id() -> ScreenID:
    """Generate new screen ID."""
    return ScreenID(generate_prefixed(Prefix.SCREEN))


def new_project_id() -> ProjectID:
    """Generate new project ID."""
    return ProjectID(generate_prefixed(Prefix.PROJECT))


def _ulid_part(id_str: str) -> str:
    return id_str.rsplit("_", 1)[-1]


def is_valid(id_str: str) -> bool:
    """Check if string is a (optionally prefixed) ULID.

    Args:
        id_str: ID string to validate

    Returns:
        True if the trailing part is a valid ULID
    """
    ulid_part = _ulid_part(id_str)
    if len(ulid_part) != 26:
        return False
    try:
        ULID.from_str(ulid_part)
        return True
    except ValueError:
        return False


def extract_prefix(id_str: str) -> str | None:
    """Extract prefix from a prefixed ID, or None when unprefixed."""
    if "_" not in id_str:
        return None
    return id_str.rsplit("_", 1)[0]


def extract_timestamp(id_str: str) -> datetime | None:
    """Extract the creation time encoded in a ULID, or None if invalid."""
    if not is_valid(id_str):
        return None
    return ULID.from_str(_ulid_part(id_str)).datetime


__all__ = [
    "NodeID",
    "ScreenID",
    "ProjectID",
    "Prefix",
    "generate_raw",
    "generate_prefixed",
    "new_node_id",
    "new_screen_id",
    "new_project_id",
    "is_valid",
    "extract_prefix",
    "extract_timestamp",
]
