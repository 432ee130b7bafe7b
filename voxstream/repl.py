"""Interactive REPL for the chat client.

Typed lines stand in for the finalized speech transcript: anything that
is not a command is asked as a question and its answer streams into a
live panel. Session state (role, context memory, last question) lives on
the ChatSession.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from voxstream.display import BRAND, StreamingAnswerDisplay, render_answer_panel
from voxstream.errors import VoxstreamError
from voxstream.keys import get_api_key, save_keys
from voxstream.registry import load_client_config, load_roles, resolve_role
from voxstream.schemas.session import ClientConfig, RolePreset
from voxstream.session import ChatSession
from voxstream.transport.base import ChatTransport
from voxstream.transport.httpx_transport import HttpxTransport

logger = logging.getLogger(__name__)

console = Console()

# Commands only when typed alone; with more words the line is a question
_BARE_COMMANDS = {
    "help", "status", "roles", "last", "again", "clear", "exit", "quit",
}

_ON_VALUES = {"on", "true", "yes", "1"}
_OFF_VALUES = {"off", "false", "no", "0"}

_SAVE_FLAG = "--save"

_HELP_ROWS = [
    ("<question>", "Ask the assistant"),
    ("ask <question>", "Ask, even if it starts with a command word"),
    ("role [key]", "Show or change the role preset"),
    ("roles", "List role presets"),
    ("context [on|off]", "Toggle remembering previous questions"),
    ("apikey [key] [--save]", "Show or replace the service key"),
    ("last", "Show the previous question"),
    ("again", "Ask the previous question again"),
    ("clear", "Clear the screen and answer"),
    ("status", "Show session status"),
    ("exit", "Leave"),
]


def answer_question(
    out: Console,
    session: ChatSession,
    question: str,
    *,
    live: bool = True,
) -> bool:
    """Ask one question and render the streamed answer.

    Ctrl+C stops the answer; whatever arrived so far stays on screen.

    Returns:
        True if the answer completed, False on error or cancellation.
    """
    try:
        if live:
            with StreamingAnswerDisplay(out, question) as display:
                session.on_update = display.create_stream_callback()
                asyncio.run(session.ask(question))
        else:
            session.on_update = None
            asyncio.run(session.ask(question))
            out.print(render_answer_panel(session.document, question=question))
    except KeyboardInterrupt:
        session.cancel()
        out.print(f"[{BRAND['dim']}]Stopped.[/{BRAND['dim']}]")
        return False
    except VoxstreamError as e:
        detail = str(e)
        message = e.user_message if not detail else f"{e.user_message}: {detail}"
        out.print(f"[{BRAND['red']}]{message}[/{BRAND['red']}]")
        return False
    finally:
        session.on_update = None
    return True


class VoxREPL:
    """Interactive REPL loop.

    Dispatches commands or treats the input as a question.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        transport: ChatTransport | None = None,
        out: Console | None = None,
        keys_file: Path | None = None,
    ) -> None:
        self._keys_file = keys_file
        self.config: ClientConfig = load_client_config(config_path)
        self.roles: dict[str, RolePreset] = load_roles(config_path)
        self.role_key = self.config.default_role or next(iter(self.roles))
        self._console = out or console
        self.session = ChatSession(
            transport or HttpxTransport.from_config(self.config),
            resolve_role(self.roles, self.role_key),
            api_key=get_api_key(self.config),
            remember_context=self.config.remember_context,
        )

    def run(self) -> None:
        """Main REPL loop."""
        self._print_status()
        self._console.print(
            f"[{BRAND['dim']}]Type a question, or 'help' for commands.[/{BRAND['dim']}]"
        )

        while True:
            try:
                prompt_text = Text()
                prompt_text.append("\nvox", style=BRAND["green"])
                prompt_text.append(" ▸ ", style=BRAND["mint"])

                user_input = self._console.input(prompt_text).strip()

                if not user_input:
                    continue

                if not self._dispatch(user_input):
                    break

            except (KeyboardInterrupt, EOFError):
                self._console.print(f"\n[{BRAND['dim']}]Goodbye.[/{BRAND['dim']}]")
                break

    def _dispatch(self, user_input: str) -> bool:
        """Handle one line of input. Returns False to leave the loop."""
        command, _, arg = user_input.partition(" ")
        command = command.lower()
        arg = arg.strip()

        # "ask <question>" sends the text even when it starts with a command word
        if command == "ask":
            if arg:
                self._ask(arg)
            else:
                self._console.print(
                    f"[{BRAND['dim']}]Usage: ask <question>[/{BRAND['dim']}]"
                )
            return True

        if not self._is_command(command, arg):
            self._ask(user_input)
            return True

        if command in ("exit", "quit"):
            self._console.print(f"[{BRAND['dim']}]Goodbye.[/{BRAND['dim']}]")
            return False
        if command == "help":
            self._print_help()
        elif command == "status":
            self._print_status()
        elif command == "roles":
            self._print_roles()
        elif command == "role":
            self._set_role(arg)
        elif command == "context":
            self._set_context(arg)
        elif command == "apikey":
            self._set_api_key(arg)
        elif command == "last":
            self._show_last()
        elif command == "again":
            last = self.session.recall_last_question()
            if last:
                self._ask(last)
            else:
                self._console.print("[yellow]No previous question.[/yellow]")
        elif command == "clear":
            self.session.clear()
            self._console.clear()
        return True

    def _is_command(self, command: str, arg: str) -> bool:
        """Decide whether a line is a command or a question."""
        if command in _BARE_COMMANDS:
            return not arg
        if command == "role":
            return not arg or arg in self.roles
        if command == "context":
            return not arg or arg.lower() in _ON_VALUES | _OFF_VALUES
        if command == "apikey":
            words = arg.split()
            if words and words[-1] == _SAVE_FLAG:
                words = words[:-1]
            return len(words) <= 1
        return False

    def _ask(self, question: str) -> None:
        answer_question(self._console, self.session, question)

    def _set_role(self, arg: str) -> None:
        if not arg:
            self._console.print(f"Role: [bold]{self.role_key}[/bold]")
            return
        self.role_key = arg
        self.session.set_role(resolve_role(self.roles, arg))
        self._console.print(f"Role set to [bold]{self.roles[arg].label}[/bold]")

    def _set_context(self, arg: str) -> None:
        value = arg.lower()
        if not value:
            enabled = self.session.toggle_context()
        else:
            enabled = value in _ON_VALUES
            self.session.set_remember_context(enabled)
        label = "ON" if enabled else "OFF"
        self._console.print(f"Remember context: [bold]{label}[/bold]")

    def _set_api_key(self, arg: str) -> None:
        """Replace the key sent with later questions, optionally persisting it.

        ``apikey`` alone reports whether a key is set; ``apikey <key>``
        applies to this session; ``apikey <key> --save`` also writes it to
        ~/.voxstream/keys.env under the configured variable.
        """
        words = arg.split()
        save = bool(words) and words[-1] == _SAVE_FLAG
        if save:
            words = words[:-1]

        if not words:
            state = "set" if self.session.has_api_key else "not set"
            self._console.print(f"API key: [bold]{state}[/bold]")
            return

        self.session.set_api_key(words[0])
        if save:
            path = save_keys({self.config.api_key_env: words[0]}, self._keys_file)
            self._console.print(f"API key saved to [bold]{path}[/bold]")
        else:
            self._console.print("API key set for this session")

    def _show_last(self) -> None:
        last = self.session.recall_last_question()
        if last:
            self._console.print(f"[{BRAND['dim']}]Last question:[/{BRAND['dim']}] {last}")
        else:
            self._console.print("[yellow]No previous question.[/yellow]")

    def _print_status(self) -> None:
        state = self.session.state
        table = Table.grid(padding=(0, 2))
        table.add_column(style=BRAND["dim"])
        table.add_column()
        preset = self.roles.get(self.role_key)
        table.add_row("Role", preset.label if preset else self.role_key)
        table.add_row("Endpoint", self.config.endpoint)
        table.add_row("Context", "ON" if state.remember_context else "OFF")
        table.add_row("Saved", str(len(state.saved_prompts)))
        self._console.print(table)

    def _print_roles(self) -> None:
        table = Table(title="Roles", show_header=True, header_style="bold")
        table.add_column("Key", style=BRAND["mint"])
        table.add_column("Label")
        for key, preset in self.roles.items():
            marker = " ●" if key == self.role_key else ""
            table.add_row(key + marker, preset.label)
        self._console.print(table)

    def _print_help(self) -> None:
        table = Table.grid(padding=(0, 2))
        table.add_column(style="bold")
        table.add_column()
        for usage, description in _HELP_ROWS:
            # Text keeps "[key]" literal instead of parsing it as markup
            table.add_row(Text(usage), description)
        self._console.print(table)
