from __future__ import annotations

import asyncio
import os
import sys
from typing import Iterable, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import FileHistory

from avashell.commands.completion import complete_tokens
from avashell.commands.dispatcher import Dispatcher
from avashell.commands.helpers import split_tokens
from avashell.config import HISTORY_PATH

_EXTRA_PROMPT_TOOLKIT_EXC: tuple = ()
if sys.platform == "win32":
    try:
        import prompt_toolkit.output.win32 as _pt_win32

        _ncsbe = getattr(_pt_win32, "NoConsoleScreenBufferError", None)
        if isinstance(_ncsbe, type) and issubclass(_ncsbe, BaseException):
            _EXTRA_PROMPT_TOOLKIT_EXC = (_ncsbe,)
    except (ImportError, AssertionError):
        _EXTRA_PROMPT_TOOLKIT_EXC = ()

_PROMPT_TOOLKIT_FALLBACK_EXC: tuple = (
                                          OSError,
                                          RuntimeError,
                                          TypeError,
                                          ValueError,
                                          AttributeError,
                                      ) + _EXTRA_PROMPT_TOOLKIT_EXC


class ShellCompleter(Completer):
    def __init__(self, dispatcher: Dispatcher) -> None:
        self.dispatcher = dispatcher

    def get_completions(self, document, complete_event) -> Iterable[Completion]:
        _ = complete_event
        text = document.text_before_cursor or ""
        params = split_tokens(text)
        if not params:
            return
        if text[-1].isspace():
            params.append("")
        word = document.get_word_before_cursor(WORD=True) or ""
        for cand in complete_tokens(params, self.dispatcher.registry, self.dispatcher.active_context):
            yield Completion(cand, start_position=-len(word))


class CommandReader:
    """Reads one line at a time; plain ``input`` off a terminal."""

    def __init__(self, dispatcher: Dispatcher, history_path: str = HISTORY_PATH) -> None:
        self.dispatcher = dispatcher
        self.history_path = history_path
        self._session: Optional[PromptSession] = None
        self._disabled = False

    def _interactive(self) -> bool:
        if self._disabled:
            return False
        try:
            return os.isatty(0) and os.isatty(1)
        except OSError:
            return False

    def _prompt_session(self) -> PromptSession:
        if self._session is None:
            hist_dir = os.path.dirname(os.path.abspath(self.history_path))
            try:
                os.makedirs(hist_dir, exist_ok=True)
            except OSError:
                pass
            self._session = PromptSession(
                completer=ShellCompleter(self.dispatcher),
                complete_while_typing=True,
                history=FileHistory(self.history_path),
                auto_suggest=AutoSuggestFromHistory(),
            )
        return self._session

    async def read(self, prompt_text: str) -> str:
        if not self._interactive():
            return (await asyncio.to_thread(input, prompt_text)).strip()
        try:
            return (await self._prompt_session().prompt_async(prompt_text)).strip()
        except (KeyboardInterrupt, EOFError):
            raise
        except _PROMPT_TOOLKIT_FALLBACK_EXC:
            self._disabled = True
            return (await asyncio.to_thread(input, prompt_text)).strip()
