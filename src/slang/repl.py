"""Interactive REPL for slang, powered by prompt_toolkit."""

from __future__ import annotations

import os
import re
import sys
import traceback
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .lexer_rd import LexError, tokenize
from .parser_rd import ParseError
from .repl_highlight import SlangLexer
from .runner import repl_eval
from .token_types import TT
from .types import State, SlangRuntimeError
from .utils import DEBUG_PY_TRACE_ENV, debug_py_trace_enabled, stringify

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/reset": ("Reset the REPL environment", ""),
}

_DEPTH_OPEN = {TT.LPAR, TT.LSQB, TT.LBRACE}
_DEPTH_CLOSE = {TT.RPAR, TT.RSQB, TT.RBRACE}


def _open_depth(text: str) -> int:
    """Bracket nesting left open at the end of *text* (0 when balanced)."""
    try:
        tokens = tokenize(text)
    except LexError:
        return 0

    depth = 0

    for tok in tokens:
        if tok.type in _DEPTH_OPEN:
            depth += 1
        elif tok.type in _DEPTH_CLOSE:
            depth = max(depth - 1, 0)

    return depth


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


def _handle_slash(line: str, state_box: list[State]) -> bool:
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
            os.environ[DEBUG_PY_TRACE_ENV] = "1"
        elif arg.lower() in ("off", "0", "false", "no"):
            os.environ.pop(DEBUG_PY_TRACE_ENV, None)
        elif arg == "":
            # Toggle.
            if debug_py_trace_enabled():
                os.environ.pop(DEBUG_PY_TRACE_ENV, None)
            else:
                os.environ[DEBUG_PY_TRACE_ENV] = "1"
        else:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        status = "on" if debug_py_trace_enabled() else "off"
        print(f"Python traceback: {status}")
        return True

    if cmd == "/reset":
        state_box[0] = State(source="")
        print("Environment reset.")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def _compute_indent(text: str) -> str:
    """Auto-indent prefix for the next continuation line."""
    return " " * (4 * _open_depth(text))


def _eval_and_echo(text: str, state: State) -> None:
    """Run one input, echoing an expression's value; errors go to stderr."""
    try:
        result, stmt = repl_eval(text, state)
    except (ParseError, LexError, SlangRuntimeError, RecursionError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if debug_py_trace_enabled():
            print("\nPython traceback:", file=sys.stderr)
            print(
                "".join(traceback.format_tb(exc.__traceback__)),
                file=sys.stderr,
                end="",
            )
        return

    if not stmt and result is not None:
        print(stringify(result))


def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    # Use a mutable box so /reset can swap the state.
    state_box: list[State] = [State(source="")]

    history = InMemoryHistory()
    lexer = SlangLexer()

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text

        # Single line with balanced brackets => accept.
        if "\n" not in text and _open_depth(text) == 0:
            buf.validate_and_handle()
            return

        # Multiline: an empty last line, or closing every bracket, accepts.
        lines = text.split("\n")
        if lines[-1].strip() == "" and "\n" in text:
            buf.text = "\n".join(lines[:-1])
            buf.cursor_position = len(buf.text)
            buf.validate_and_handle()
            return

        if "\n" in text and _open_depth(text) == 0:
            buf.validate_and_handle()
            return

        buf.insert_text("\n" + _compute_indent(text))

    session: PromptSession[str] = PromptSession(
        history=history,
        lexer=lexer,
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("slang repl - Ctrl-D to exit, / for commands")

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

        # Slash command?
        if _handle_slash(text, state_box):
            continue

        _eval_and_echo(text, state_box[0])
