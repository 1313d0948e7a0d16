"""Development runner with hot reload.

Watches all .py files in the project directory and restarts the chosen
process when any change is detected.

Usage:
    python dev.py          # Telegram bot
    python dev.py server   # /api/chat endpoint
"""
import sys

from watchfiles import run_process


def _run_bot():
    from main import main
    main()


def _run_server():
    from server import main
    main()


if __name__ == "__main__":
    target = _run_server if sys.argv[1:] == ["server"] else _run_bot
    print(f"Dev mode: watching for .py changes, {target.__name__[5:]} will restart automatically.")
    run_process(
        ".",
        target=target,
        watch_filter=lambda change, path: path.endswith(".py"),
    )
