"""Session package: project store, document session and its observers."""

from session.callbacks import LoggingCallback, SessionCallback
from session.commands import (
    InsertCharacterReference,
    InsertDialogue,
    InsertLocationReference,
    SessionCommand,
)
from session.document_session import DocumentSession, tab_id_for
from session.project import ProjectStore

__all__ = [
    "DocumentSession",
    "ProjectStore",
    "SessionCallback",
    "LoggingCallback",
    "SessionCommand",
    "InsertDialogue",
    "InsertCharacterReference",
    "InsertLocationReference",
    "tab_id_for",
]
