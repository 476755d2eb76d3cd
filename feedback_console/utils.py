"""
Utils module - logging setup and small normalization helpers shared by the console.
"""
import logging

from rich.logging import RichHandler

from feedback_console.config import BSH_SUFFIX, ROLE_BSH

_configured = False


def configure_logging(level=logging.INFO):
    """Install the rich handler on the root logger once."""
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=level,
        format="%(message)s",
    )
    logging.root.handlers = [
        RichHandler(rich_tracebacks=True, show_path=True, tracebacks_show_locals=False,
                    log_time_format="[%b %d, %Y, %I:%M:%S %p]",
                    )
    ]
    _configured = True


def is_bsh(role):
    return role == ROLE_BSH


def with_bsh_suffix(branch):
    """Append the BSH suffix if it is missing."""
    if branch.endswith(BSH_SUFFIX):
        return branch
    return f"{branch}{BSH_SUFFIX}"


def strip_bsh_suffix(branch):
    """Remove the BSH suffix if present."""
    if branch.endswith(BSH_SUFFIX):
        return branch[:-len(BSH_SUFFIX)]
    return branch


def effective_branch(branch, role):
    """Branch as stored for the given role."""
    return with_bsh_suffix(branch) if is_bsh(role) else branch


def normalize_semester(semester):
    """Normalize semester input ("Semester 2", " 2 ", 2) to an int."""
    value = str(semester).strip()
    if value.lower().startswith("semester"):
        value = value[len("semester"):].strip()
    return int(value)
