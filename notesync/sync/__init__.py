"""
Sync package
"""

from .query_cache import ICacheObserver, QueryCache
from .mutations import MutationOrchestrator
from .pagination import PaginationController, total_pages

__all__ = ['ICacheObserver', 'QueryCache', 'MutationOrchestrator', 'PaginationController', 'total_pages']
