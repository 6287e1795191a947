import json
from typing import Any

from rich.console import Console
from rich.text import Text

CONSOLE = Console(highlight=False)
ERR_CONSOLE = Console(stderr=True, highlight=False)

_RICH_BROKEN = False


def _disable_rich_runtime() -> None:
    global _RICH_BROKEN
    _RICH_BROKEN = True


def print_info(text: str = "") -> None:
    if not _RICH_BROKEN:
        try:
            CONSOLE.print(text, markup=False, highlight=False, soft_wrap=True)
            return
        except (AttributeError, TypeError, ValueError, OSError):
            _disable_rich_runtime()
    print(text)


def print_error(text: str) -> None:
    if not _RICH_BROKEN:
        try:
            ERR_CONSOLE.print(Text(text, style="bold red"), highlight=False, soft_wrap=True)
            return
        except (AttributeError, TypeError, ValueError, OSError):
            _disable_rich_runtime()
    print(text)


def pformat(obj: Any) -> str:
    if isinstance(obj, str):
        return obj
    try:
        return json.dumps(obj, ensure_ascii=False, indent=2, default=str)
    except (TypeError, ValueError, OverflowError, RecursionError):
        return repr(obj)


def pprint(obj: Any) -> None:
    print_info(pformat(obj))
