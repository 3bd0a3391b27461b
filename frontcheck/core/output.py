"""
Result Sink
Serialises findings and diagnostics from concurrent workers onto the
output streams.
"""

import sys
import threading
from enum import Enum
from typing import Optional, TextIO

from termcolor import colored


FINDING_BANNER = "Potential CloudFront misconfiguration found:"


class Kind(Enum):
    FINDING = 'finding'
    DIAGNOSTIC = 'diagnostic'


class ResultSink:
    """
    Thread-safe line writer.

    Findings and diagnostics go to `stream` (stdout); operator status
    messages from log() go to `err_stream` so stdout can be piped.
    Every line is one write() under the lock.
    """

    def __init__(self, stream: Optional[TextIO] = None, verbose: bool = False,
                 err_stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self.err_stream = err_stream if err_stream is not None else sys.stderr
        self.verbose = verbose
        self.findings = 0
        self.diagnostics = 0
        self._lock = threading.Lock()

    def emit(self, line: str, kind: Kind = Kind.FINDING):
        """Write one finding or diagnostic line"""
        if kind is Kind.DIAGNOSTIC:
            if not self.verbose:
                return
            text = line
        elif self.verbose:
            text = colored(f"{FINDING_BANNER} {line}", "green")
        else:
            text = line

        with self._lock:
            if kind is Kind.FINDING:
                self.findings += 1
            else:
                self.diagnostics += 1
            self._write(self.stream, text)

    def finding(self, url: str):
        self.emit(url, Kind.FINDING)

    def diagnostic(self, line: str):
        self.emit(line, Kind.DIAGNOSTIC)

    def log(self, message: str, color: Optional[str] = None):
        """Status line for the operator (stderr)"""
        text = colored(message, color) if color else message
        with self._lock:
            self._write(self.err_stream, text)

    def debug(self, message: str, color: Optional[str] = None):
        """Status line shown only in verbose mode"""
        if self.verbose:
            self.log(message, color)

    @staticmethod
    def _write(stream: TextIO, text: str):
        stream.write(f"{text}\n")
        stream.flush()
