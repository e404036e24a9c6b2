"""
Line Classifier
Splits a batched AT response into context-tagged lines
"""

import re
from typing import Iterable, List, Optional

from .constants import ACK_TOKEN, ERROR_TOKEN
from .models import RawLine

# AT+..., AT^..., AT$... or bare ATI / ATE0
COMMAND_ECHO_RE = re.compile(r"^AT(?:[+^$!&%*#].*|[A-Z]?\d*)$")

_NEWLINE_RE = re.compile(r"\r\n|\r|\n")


def split_lines(blob: Optional[str]) -> List[str]:
    """Split on CR/LF, trim, and drop empty lines"""
    if not isinstance(blob, str):
        return []
    return [line.strip() for line in _NEWLINE_RE.split(blob) if line.strip()]


def is_command_echo(line: str) -> bool:
    return bool(COMMAND_ECHO_RE.match(line))


def classify_lines(blob: Optional[str]) -> List[RawLine]:
    """
    Classify a raw response blob into RawLine records.

    Acknowledgement lines are dropped. Command echo lines are not emitted;
    each one becomes the originating command of every following line until
    the next echo or the end of input.
    """
    lines: List[RawLine] = []
    context: Optional[str] = None

    for text in split_lines(blob):
        if text == ACK_TOKEN:
            continue
        if is_command_echo(text):
            context = text
            continue
        lines.append(RawLine(text=text, originating_command=context))

    return lines


def clean_response(blob: Optional[str]) -> str:
    """Diagnostic echo of the response with acknowledgement noise removed"""
    return "\n".join(line for line in split_lines(blob) if line != ACK_TOKEN)


def has_error_token(blob: Optional[str]) -> bool:
    return isinstance(blob, str) and ERROR_TOKEN in blob


class LineIndex:
    """Lookup helpers over classified lines"""

    def __init__(self, lines: Iterable[RawLine]):
        self.lines = list(lines)

    def __iter__(self):
        return iter(self.lines)

    def __len__(self):
        return len(self.lines)

    def texts(self) -> List[str]:
        return [line.text for line in self.lines]

    def first_containing(self, token: str) -> Optional[str]:
        for line in self.lines:
            if token in line.text:
                return line.text
        return None

    def all_containing(self, token: str) -> List[str]:
        return [line.text for line in self.lines if token in line.text]

    def first_starting(self, prefix: str) -> Optional[str]:
        for line in self.lines:
            if line.text.startswith(prefix):
                return line.text
        return None

    def any_containing(self, token: str) -> bool:
        return self.first_containing(token) is not None

    def from_command(self, command_token: str) -> List[RawLine]:
        """Lines whose originating echo mentions the given command token"""
        return [
            line
            for line in self.lines
            if line.originating_command and command_token in line.originating_command
        ]
