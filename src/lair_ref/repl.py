"""Interactive REPL for Lair, powered by prompt_toolkit."""

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
from .repl_highlight import LairLexer
from .runner import LAIR_ERRORS, report_error, run
from .runtime import Environment
from .token_types import TK
from .utils import debug_py_trace_enabled

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/reset": ("Drop user-defined functions", ""),
    "/names": ("List bound function names", ""),
}

_LAYOUT = {TK.INDENT, TK.DEDENT, TK.EOF}
_INDENT_UNIT = "\t"


def _is_block_header(line: str, env: Environment) -> bool:
    """True if *line* looks like the header of a definition.

    A header is a line of bare names whose first name is not bound yet; run
    as a call it could only fail with an undefined function.
    """
    if line[:1] in (" ", "\t"):
        return False

    try:
        tokens = [tok for tok in tokenize(line) if tok.kind not in _LAYOUT]
    except LexError:
        return False

    if not tokens or any(tok.kind is not TK.ATOM for tok in tokens):
        return False

    return not env.is_bound(tokens[0].text)


def _compute_indent(text: str, env: Environment) -> str:
    """Compute the auto-indent prefix for the next continuation line."""
    last = text.split("\n")[-1]

    if _is_block_header(last, env):
        return _INDENT_UNIT

    if last.strip():
        return last[: len(last) - len(last.lstrip())]

    return ""


class _ReplCompleter(Completer):
    """Complete slash commands and bound function names."""

    def __init__(self, env_box: list[Environment]):
        self.env_box = env_box

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor

        if text.startswith("/"):
            for cmd, (desc, hint) in _SLASH_CMDS.items():
                if cmd.startswith(text):
                    yield Completion(cmd, start_position=-len(text), display_meta=desc)
            return

        word = document.get_word_before_cursor()
        if not word:
            return

        for name in self.env_box[0].names():
            if name.startswith(word):
                yield Completion(name, start_position=-len(word))


def _handle_slash(line: str, env_box: list[Environment]) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/py-traceback":
        if arg.lower() in ("on", "1", "true", "yes"):
            os.environ["LAIR_DEBUG_PY_TRACE"] = "1"
        elif arg.lower() in ("off", "0", "false", "no"):
            os.environ.pop("LAIR_DEBUG_PY_TRACE", None)
        elif arg == "":
            if debug_py_trace_enabled():
                os.environ.pop("LAIR_DEBUG_PY_TRACE", None)
            else:
                os.environ["LAIR_DEBUG_PY_TRACE"] = "1"
        else:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        state = "on" if debug_py_trace_enabled() else "off"
        print(f"Python traceback: {state}")
        return True

    if cmd == "/reset":
        env_box[0] = Environment()
        print("Environment reset.")
        return True

    if cmd == "/names":
        print(" ".join(env_box[0].names()))
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    # One Environment per session; /reset swaps it.
    env_box: list[Environment] = [Environment()]

    bindings = KeyBindings()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text
        env = env_box[0]

        if "\n" not in text:
            if _is_block_header(text, env):
                buf.insert_text("\n" + _compute_indent(text, env))
                return

            buf.validate_and_handle()
            return

        # Multiline: an empty last line submits the block.
        lines = text.split("\n")
        if lines[-1].strip() == "":
            buf.text = "\n".join(lines[:-1])
            buf.cursor_position = len(buf.text)
            buf.validate_and_handle()
            return

        buf.insert_text("\n" + _compute_indent(text, env))

    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=LairLexer(),
        completer=_ReplCompleter(env_box),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("lair repl: Ctrl-D to exit, / for commands")

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

        if _handle_slash(text, env_box):
            continue

        try:
            run(text, env_box[0])
        except (*LAIR_ERRORS, RecursionError) as exc:
            report_error(exc)
