"""Operator disambiguation among candidate bundles."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

import click

from carti.output import user_output
from carti.core.bundle import Bundle, parse_short_desc
from carti.core.errors import CartiError, EmptyCandidateSet

logger = logging.getLogger(__name__)


class Chooser(ABC):
    """Asks someone (or something) to pick one of several rendered options."""

    @abstractmethod
    def choose(self, prompt: str, options: Sequence[str]) -> str:
        """Return exactly one element of options."""
        ...


class InteractiveChooser(Chooser):
    """Numbered menu on stderr; pressing Enter picks the first option."""

    def choose(self, prompt: str, options: Sequence[str]) -> str:
        user_output(click.style(prompt, bold=True))
        for i, option in enumerate(options, start=1):
            user_output(f"  {i}) {option}")
        index = click.prompt(
            "Select",
            type=click.IntRange(1, len(options)),
            default=1,
            err=True,
        )
        return options[index - 1]


class FirstChoiceChooser(Chooser):
    """Non-interactive chooser that always takes the first option."""

    def choose(self, prompt: str, options: Sequence[str]) -> str:
        logger.info("%s: picking %s", prompt, options[0])
        return options[0]


def pick_candidate(
    chooser: Chooser,
    prompt: str,
    candidates: Sequence[Bundle],
    render: Callable[[Bundle], str],
) -> Bundle:
    """Resolve a list of candidate bundles to exactly one.

    A single candidate is returned without asking. Otherwise each candidate is
    rendered to a short descriptor, the chooser picks one, and the descriptor
    is parsed back to the content id of the selected bundle.

    Raises:
        EmptyCandidateSet: If candidates is empty
        CartiError: If the chooser returns something that matches no candidate
    """
    if not candidates:
        raise EmptyCandidateSet(prompt)
    if len(candidates) == 1:
        return candidates[0]

    rendered = [render(candidate) for candidate in candidates]
    answer = chooser.choose(prompt, rendered)
    selected_id = parse_short_desc(answer).id
    for candidate in candidates:
        if candidate.id == selected_id:
            return candidate
    raise CartiError(f"Selection {answer!r} does not match any candidate")
