"""
Core package
"""

from .models import (
    NOTES_NAMESPACE, DEFAULT_PAGE_SIZE, EditorMode, MutationStatus, NotificationLevel,
    PageQuery, PageResult, CacheEntry, PageView, MutationResult, Notification, EditorSession
)
from .schemas import Note, CreateNoteInput, UpdateNoteInput
from .exceptions import (
    NoteSyncException, ConfigError, ValidationFailed, NotesApiError, NotesTransportError,
    NotesApplicationError, NotesUnexpectedError, NotesRequestCancelled, PageSizeMismatchError, normalize_error
)

__all__ = [
    'NOTES_NAMESPACE', 'DEFAULT_PAGE_SIZE', 'EditorMode', 'MutationStatus', 'NotificationLevel',
    'PageQuery', 'PageResult', 'CacheEntry', 'PageView', 'MutationResult', 'Notification', 'EditorSession',
    'Note', 'CreateNoteInput', 'UpdateNoteInput',
    'NoteSyncException', 'ConfigError', 'ValidationFailed', 'NotesApiError', 'NotesTransportError',
    'NotesApplicationError', 'NotesUnexpectedError', 'NotesRequestCancelled', 'PageSizeMismatchError', 'normalize_error'
]
