"""
mighf VM — Terminal Output Sink

The only output device the machine has. Three operations:

  clear()            ESC[2J ESC[H   — clear screen, cursor home (TDRAW_CLEAR)
  put_char(x, y, c)  ESC[y+1;x+1H c — place one character (TDRAW_PIXEL)
  print_line(text)   one line of PRINT output

Coordinates are 0-based on the machine side, 1-based in the escape
sequence. Writes are fire-and-forget: flushed, never acknowledged.
"""

import sys
from typing import Optional, TextIO

CSI = "\033["


class Terminal:
    """ANSI terminal sink writing to a text stream (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        # Resolved late so pytest's capsys sees the writes
        return self._stream if self._stream is not None else sys.stdout

    def _write(self, text: str):
        self.stream.write(text)
        self.stream.flush()

    def clear(self):
        self._write(f"{CSI}2J{CSI}H")

    def put_char(self, x: int, y: int, ch: str):
        self._write(f"{CSI}{y + 1};{x + 1}H{ch}")

    def print_line(self, text: str):
        self._write(text + "\n")
