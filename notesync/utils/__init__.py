"""
Utils package
"""

from .notifier import INotificationObserver, LoggingNotificationObserver, Notifier, ProgressIndicator
from .response_manager import ResponseManager
from .template_renderer import ITemplateRenderer, Jinja2TemplateRenderer

__all__ = [
    'INotificationObserver', 'LoggingNotificationObserver', 'Notifier', 'ProgressIndicator',
    'ResponseManager', 'ITemplateRenderer', 'Jinja2TemplateRenderer'
]
