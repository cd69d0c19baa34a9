import io

import pytest
from rich.console import Console


class CapturedConsole:
    """A Rich console writing plain text into memory."""

    def __init__(self):
        self.buffer = io.StringIO()
        self.console = Console(
            file=self.buffer, width=200, color_system=None, force_terminal=False
        )

    @property
    def lines(self) -> list[str]:
        return self.buffer.getvalue().splitlines()


@pytest.fixture
def captured():
    return CapturedConsole()
