from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Callable, Protocol, Sequence

from InquirerPy import get_style, inquirer

from wifi_chooser.core import Config
from wifi_chooser.errors import CommandIOError

logger = logging.getLogger(__name__)

# Lists longer than this get a fuzzy filter instead of a plain list.
FUZZY_THRESHOLD = 30

MENU_STYLE = get_style(
    {
        "question": "bold #e5e7eb",
        "answer": "#86efac",
        "pointer": "bold #22c55e",
        "instruction": "#9ca3af",
        "fuzzy_prompt": "#e5e7eb",
        "fuzzy_info": "#9ca3af",
        "fuzzy_border": "#39ff14",
        "fuzzy_match": "#22c55e",
    },
    style_override=False,
)


class Selectable(Protocol):
    """Something that can be shown as one aligned line of a menu."""

    def key_len(self) -> int: ...

    def line(self, key_len: int) -> str: ...


# Shows ``items`` under ``prompt`` and returns the chosen index, or None.
Selector = Callable[[str, Sequence[Selectable]], "int | None"]


def render_lines(items: Sequence[Selectable]) -> list[str]:
    width = max((item.key_len() for item in items), default=0)
    return [item.line(width) for item in items]


def terminal_select(prompt: str, items: Sequence[Selectable]) -> int | None:
    lines = render_lines(items)
    if not lines:
        return None
    choices = [{"name": line, "value": index} for index, line in enumerate(lines)]
    options = dict(
        message=prompt,
        choices=choices,
        pointer=">",
        qmark="",
        amark="",
        style=MENU_STYLE,
        mandatory=False,
        raise_keyboard_interrupt=True,
        keybindings={"skip": [{"key": "escape"}]},
    )
    try:
        if len(choices) > FUZZY_THRESHOLD:
            return inquirer.fuzzy(border=True, **options).execute()
        return inquirer.select(**options).execute()
    except EOFError:
        return None


def command_select(command: str, prompt: str, items: Sequence[Selectable]) -> int | None:
    """Pick through a dmenu-style program: lines on stdin, the choice on stdout.

    ``prompt`` is not passed on; menu programs disagree on how to take one,
    so it belongs in ``command`` itself.
    """
    lines = render_lines(items)
    if not lines:
        return None
    argv = shlex.split(command)
    try:
        result = subprocess.run(
            argv,
            input="\n".join(lines) + "\n",
            text=True,
            stdout=subprocess.PIPE,
            check=False,
        )
    except OSError as exc:
        raise CommandIOError(f"Unable to execute menu command {argv[0]}: {exc}") from exc
    if result.returncode != 0:
        logger.debug("Menu command exited with status %d; nothing selected.", result.returncode)
        return None
    chosen = result.stdout.rstrip("\n")
    if chosen not in lines:
        return None
    return lines.index(chosen)


def make_selector(config: Config) -> Selector:
    if config.menu_command:
        menu_command = config.menu_command

        def _select(prompt: str, items: Sequence[Selectable]) -> int | None:
            return command_select(menu_command, prompt, items)

        return _select
    return terminal_select
