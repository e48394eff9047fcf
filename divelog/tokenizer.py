"""
Chunked feeding of one XML source into an expat push parser.

The adapter owns the expat parser for a single source: it reads the input
in fixed-size chunks, forwards element open/close events to a handler and,
while a text-valued element is open, collects character data into a buffer.
"""

import logging
import sys
import xml.parsers.expat
from typing import BinaryIO, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 8192
STDIN_NAME = "<stdin>"


class Handler(Protocol):
    def attach(self, source: "XMLSource") -> None: ...

    def start(self, name: str, attrs: dict) -> None: ...

    def end(self, name: str) -> None: ...

    def finish(self) -> None: ...


class XMLSource:
    """One input (file path, or "-" for standard input) bound to a handler."""

    def __init__(self, path: str, handler: Handler, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.path = path
        self.name = STDIN_NAME if path == "-" else path
        self.handler = handler
        self.chunk_size = chunk_size
        self._parser = None
        self._text: Optional[List[str]] = None

    def position(self) -> Tuple[int, int]:
        """Current (line, column) of the tokenizer, or (0, 0) when idle."""
        if self._parser is None:
            return 0, 0
        return self._parser.CurrentLineNumber, self._parser.CurrentColumnNumber

    def begin_text(self) -> None:
        """Start collecting character data into a fresh buffer."""
        self._text = []
        self._parser.CharacterDataHandler = self._text.append

    def end_text(self) -> str:
        """Stop collecting character data and hand over what was collected."""
        if self._parser is not None:
            self._parser.CharacterDataHandler = None
        text = "".join(self._text or ())
        self._text = None
        return text

    def _create(self):
        parser = xml.parsers.expat.ParserCreate()
        parser.StartElementHandler = self.handler.start
        parser.EndElementHandler = self.handler.end
        return parser

    def feed(self, stream: BinaryIO) -> bool:
        """
        Parse everything readable from a binary stream.

        Returns:
            True when the whole stream was consumed without a syntax error
        """
        self._parser = self._create()
        self.handler.attach(self)
        try:
            while True:
                chunk = stream.read(self.chunk_size)
                self._parser.Parse(chunk, not chunk)
                if not chunk:
                    return True
        except xml.parsers.expat.ExpatError as e:
            logger.error(
                f"{self.name}:{e.lineno}:{e.offset}: error: "
                f"{xml.parsers.expat.ErrorString(e.code)}"
            )
            return False
        except OSError as e:
            logger.error(f"{self.name}: {e}")
            return False
        finally:
            self.end_text()
            self.handler.finish()
            self._parser = None

    def run(self) -> bool:
        """Open the source and parse it."""
        if self.path == "-":
            return self.feed(sys.stdin.buffer)
        try:
            stream = open(self.path, "rb")
        except OSError as e:
            logger.error(f"{self.path}: {e}")
            return False
        with stream:
            return self.feed(stream)
