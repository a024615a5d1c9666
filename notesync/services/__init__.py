"""
Services package
"""

from .notes_api import INoteRepository, NotesApiClient
from .validators import validate_create, validate_update, validate_note_id

__all__ = ['INoteRepository', 'NotesApiClient', 'validate_create', 'validate_update', 'validate_note_id']
