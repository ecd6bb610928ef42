"""Mail counts from maildir inboxes."""

from __future__ import annotations

import enum
import os
from typing import Iterable

from barblocks.api import State

DEFAULT_THRESHOLD_WARNING = 1
DEFAULT_THRESHOLD_CRITICAL = 10


class MailType(enum.Enum):
    """Which part of a maildir to count."""

    NEW = "new"
    CUR = "cur"
    ALL = "all"


def _count_entries(directory: str) -> int:
    try:
        with os.scandir(directory) as entries:
            return sum(1 for entry in entries if not entry.name.startswith("."))
    except OSError:
        return 0


def count_mail(inbox: str | os.PathLike, mail_type: MailType = MailType.NEW) -> int:
    """Number of messages in one maildir (``~`` and variables are expanded)."""
    root = os.path.expandvars(os.path.expanduser(os.fspath(inbox)))
    new = os.path.join(root, "new")
    cur = os.path.join(root, "cur")
    if mail_type is MailType.NEW:
        return _count_entries(new)
    if mail_type is MailType.CUR:
        return _count_entries(cur)
    return _count_entries(new) + _count_entries(cur)


def total_mail(
    inboxes: Iterable[str | os.PathLike], mail_type: MailType = MailType.NEW
) -> int:
    """Number of messages across all inboxes."""
    return sum(count_mail(inbox, mail_type) for inbox in inboxes)


def mail_state(
    count: int,
    warning: int = DEFAULT_THRESHOLD_WARNING,
    critical: int = DEFAULT_THRESHOLD_CRITICAL,
) -> State:
    """Block state for ``count`` messages."""
    if count >= critical:
        return State.CRITICAL
    if count >= warning:
        return State.WARNING
    return State.IDLE