#!/usr/bin/env python3
"""
Notes 交互式终端
输入命令直接驱动同步层，调用真实的笔记服务。

    python run.py [config.json]
"""

import asyncio
import sys

from notesync import NotesApp, load_config
from notesync.core.exceptions import ConfigError
from notesync.core.log import setup_logging
from notesync.core.models import Notification, NotificationLevel
from notesync.utils.notifier import INotificationObserver


class ConsoleNotificationObserver(INotificationObserver):
    """把全局提示打印到终端（toast）"""

    async def on_notification(self, notification: Notification):
        icon = "❌" if notification.level is NotificationLevel.ERROR else "✅"
        print(f"{icon} {notification.message}")


async def main(config_path=None):
    """主函数"""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print(f"❌ 配置错误: {e}")
        return 1

    setup_logging(config.get("advanced_settings", {}).get("enable_debug_mode", False))
    app = NotesApp(config)
    app.notifier.add_observer(ConsoleNotificationObserver())

    print("🎮 Notes")
    print("=" * 30)
    print(await app.start())
    print("\n输入 #help 查看命令，quit 退出\n")

    loop = asyncio.get_running_loop()
    try:
        while True:
            user_input = (await loop.run_in_executor(None, input, "💬 ")).strip()

            if not user_input:
                continue
            if user_input.lower() == 'quit':
                break

            output = await app.handle_message(user_input)
            if output:
                print(output)

    except (KeyboardInterrupt, EOFError):
        pass

    print("\n👋 退出中...")
    await app.terminate()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None)))
