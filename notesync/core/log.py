"""
Package logger
包级日志记录器，所有模块通过 `from ..core.log import logger` 使用。
"""

import logging

logger = logging.getLogger("notesync")

_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def setup_logging(debug: bool = False) -> logging.Logger:
    """为包日志安装一个控制台 handler，重复调用不会重复添加。"""
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if not any(getattr(h, "_notesync", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._notesync = True
        logger.addHandler(handler)
    return logger
