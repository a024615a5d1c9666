"""
notesync - 笔记服务客户端同步层
"""

from .app import NotesApp
from .core.config import load_config

__version__ = "1.0.0"

__all__ = ['NotesApp', 'load_config', '__version__']
