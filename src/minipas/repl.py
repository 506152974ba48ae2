"""Interactive prompt for Pascal programs, powered by prompt_toolkit."""

from __future__ import annotations

import os
import re
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .lexer_rd import LexError, tokenize
from .repl_highlight import PascalLexer
from .runner import PIPELINE_ERRORS, report_error, run
from .token_types import TT
from .utils import DEBUG_PY_TRACE_ENV, debug_py_trace_enabled, set_trace, trace_enabled

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/help": ("Show help", ""),
    "/clear": ("Clear the terminal screen", ""),
    "/scope": ("Toggle scope tracing", "[on|off]"),
    "/stack": ("Toggle call stack tracing", "[on|off]"),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/exit": ("Leave the REPL", ""),
}

HELP_TEXT = """\
Enter a Pascal program; it runs once it ends with 'end.' or after an empty line.

  program Demo;
  var a : integer;
  begin
     a := 2 + 3 * 4;
  end.
"""


class ExitRepl(Exception):
    pass


def is_program_complete(text: str) -> bool:
    """True once the last two significant tokens are END and DOT."""
    try:
        tokens = tokenize(text)
    except LexError:
        # An open comment or a stray character: let the user keep typing
        # unless the buffer plainly ends the program.
        return text.rstrip().lower().endswith("end.")

    sig = [tok.type for tok in tokens if tok.type != TT.EOF]
    return sig[-2:] == [TT.END, TT.DOT]


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def _toggle(arg: str, current: bool) -> bool | None:
    if arg.lower() in ("on", "1", "true", "yes"):
        return True
    if arg.lower() in ("off", "0", "false", "no"):
        return False
    if arg == "":
        return not current
    return None


def handle_slash(line: str) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/help":
        print(HELP_TEXT, end="")
        for name, (desc, hint) in _SLASH_CMDS.items():
            print(f"  {name} {hint}".ljust(26) + desc)
        return True

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/exit":
        raise ExitRepl()

    if cmd in ("/scope", "/stack"):
        logger_name = "minipas.semantic" if cmd == "/scope" else "minipas.evaluator"
        state = _toggle(arg, trace_enabled(logger_name))
        if state is None:
            print(f"Usage: {cmd} [on|off]", file=sys.stderr)
            return True

        set_trace(logger_name, state)
        print(f"{cmd[1:]} tracing: {'on' if state else 'off'}")
        return True

    if cmd == "/py-traceback":
        state = _toggle(arg, debug_py_trace_enabled())
        if state is None:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        if state:
            os.environ[DEBUG_PY_TRACE_ENV] = "1"
        else:
            os.environ.pop(DEBUG_PY_TRACE_ENV, None)
        print(f"Python traceback: {'on' if state else 'off'}")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    history = InMemoryHistory()
    bindings = KeyBindings()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text

        if text.lstrip().startswith("/") and "\n" not in text:
            buf.validate_and_handle()
            return

        if is_program_complete(text):
            buf.validate_and_handle()
            return

        # Empty last line submits whatever was typed so errors surface.
        lines = text.split("\n")
        if len(lines) > 1 and lines[-1].strip() == "":
            buf.text = "\n".join(lines[:-1])
            buf.cursor_position = len(buf.text)
            buf.validate_and_handle()
            return

        buf.insert_text("\n")

    session: PromptSession[str] = PromptSession(
        history=history,
        lexer=PascalLexer(),
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("minipas repl - Ctrl-D to exit, /help for commands")

    while True:
        try:
            text = session.prompt(">>> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        try:
            if handle_slash(text):
                continue
        except ExitRepl:
            break

        try:
            run(text, echo=print)
        except PIPELINE_ERRORS as exc:
            report_error(exc)
