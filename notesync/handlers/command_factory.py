"""
Command factory - 命令工厂
把 "#" 后面的命令名映射到命令处理器实例，同一处理器可以注册多个别名。
"""

from typing import Dict, List, Optional

from .command_handlers import (
    DeleteCommandHandler,
    EditCommandHandler,
    HelpCommandHandler,
    ICommandHandler,
    ListCommandHandler,
    NewCommandHandler,
    NextCommandHandler,
    PageCommandHandler,
    PreviousCommandHandler,
    RefreshCommandHandler,
    ShowCommandHandler,
)


class CommandFactory:
    """命令名 -> 处理器"""

    def __init__(self, app):
        self.app = app
        self._handlers: Dict[str, ICommandHandler] = {}
        self._register_handlers()

    def _register_handlers(self):
        aliases = {
            ListCommandHandler: ('list', 'notes'),
            NextCommandHandler: ('next',),
            PreviousCommandHandler: ('prev', 'previous'),
            PageCommandHandler: ('page',),
            RefreshCommandHandler: ('refresh',),
            ShowCommandHandler: ('show',),
            NewCommandHandler: ('new',),
            EditCommandHandler: ('edit',),
            DeleteCommandHandler: ('del', 'rm'),
            HelpCommandHandler: ('help',),
        }
        for handler_cls, names in aliases.items():
            handler = handler_cls(self.app)
            for name in names:
                self._handlers[name] = handler

    def get_handler(self, command: str) -> Optional[ICommandHandler]:
        return self._handlers.get(command.lower())

    def register_handler(self, command: str, handler: ICommandHandler):
        """注册或替换一个命令"""
        self._handlers[command.lower()] = handler

    def list_commands(self) -> List[str]:
        return sorted(self._handlers)
