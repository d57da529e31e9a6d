"""Operator decision providers for rename suggestions."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

if TYPE_CHECKING:
    from collections.abc import Iterable

_YES = frozenset({"y", "yes"})
_NO = frozenset({"n", "no"})


def parse_answer(answer: str, *, default: bool) -> bool:
    """Interpret a yes/no answer, falling back to the default for blank or unknown input."""
    text = answer.strip().lower()
    if text in _YES:
        return True
    if text in _NO:
        return False
    return default


def prompt_suffix(*, default: bool) -> str:
    """Return the `[Y/n]` or `[y/N]` hint for a default answer."""
    return " [Y/n]" if default else " [y/N]"


class StreamDecisionProvider:
    """Ask questions on a text stream and read one answer line per question.

    End of input counts as a blank answer, so the default applies.
    """

    def __init__(self, input_stream: TextIO | None = None, output_stream: TextIO | None = None) -> None:
        self.input_stream = input_stream or sys.stdin
        self.output_stream = output_stream or sys.stdout

    def ask_yes_no(self, question: str, default: bool) -> bool:  # noqa: FBT001
        """Write the question with its default hint and read the answer line."""
        self.output_stream.write(f"{question}{prompt_suffix(default=default)} ")
        self.output_stream.flush()
        return parse_answer(self.input_stream.readline(), default=default)


class DefaultDecisionProvider:
    """Accept every default answer without asking."""

    def ask_yes_no(self, question: str, default: bool) -> bool:  # noqa: ARG002, FBT001, PLR6301
        """Return the default answer."""
        return default


class ScriptedDecisionProvider:
    """Replay prepared answers, then fall back to the defaults."""

    def __init__(self, answers: Iterable[str]) -> None:
        self._answers = list(answers)
        self.questions: list[str] = []

    def ask_yes_no(self, question: str, default: bool) -> bool:  # noqa: FBT001
        """Record the question and consume the next prepared answer."""
        self.questions.append(question)
        answer = self._answers.pop(0) if self._answers else ""
        return parse_answer(answer, default=default)
