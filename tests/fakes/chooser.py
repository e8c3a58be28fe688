"""Fake chooser for testing without a terminal.

Records every prompt it was asked and answers from a scripted list of
1-based picks, defaulting to the first option.
"""

from collections.abc import Sequence

from carti.core.chooser import Chooser


class FakeChooser(Chooser):
    """Scripted chooser.

    Attributes:
        picks: 1-based indexes to answer with, consumed in order. When
            exhausted the first option is picked.
        prompts: (prompt, options) pairs for every call, in call order

    Example:
        chooser = FakeChooser(picks=[2])
        ...
        assert chooser.prompts[0][0] == "Which bundle would you like to install"
    """

    def __init__(self, picks: list[int] | None = None) -> None:
        self.picks = list(picks or [])
        self.prompts: list[tuple[str, list[str]]] = []

    def choose(self, prompt: str, options: Sequence[str]) -> str:
        self.prompts.append((prompt, list(options)))
        index = self.picks.pop(0) if self.picks else 1
        return options[index - 1]
