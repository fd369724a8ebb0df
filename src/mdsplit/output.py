# Copyright (c) 2022 Ruben Vorderman
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

import gzip
import io
import logging
import sys
from typing import Iterable, Optional, TextIO

from .pairing import AlignmentPair, header_fields

try:
    from isal import igzip
except ImportError:
    igzip = None  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_COMPRESSLEVEL = 1


def open_output(filename: Optional[str],
                compresslevel: int = DEFAULT_COMPRESSLEVEL) -> TextIO:
    """Open ``filename`` for writing text, stdout when it is empty."""
    if not filename or filename == "-":
        logger.info("Opening file handle for STDOUT...")
        return io.TextIOWrapper(sys.stdout.buffer, encoding="ascii",
                                newline="\n", write_through=True)
    logger.info("Opening file handle for %s...", filename)
    if filename.lower().endswith(".gz"):
        gzip_module = igzip if igzip else gzip
        return gzip_module.open(filename, "wt", compresslevel=compresslevel,
                                encoding="ascii", newline="\n")
    return open(filename, "wt", encoding="ascii", newline="\n")


class RowWriter:
    def __init__(self, filename: Optional[str] = None, paired: bool = True,
                 compresslevel: int = DEFAULT_COMPRESSLEVEL):
        self.filename = filename or "STDOUT"
        self.paired = paired
        self._file = open_output(filename, compresslevel)
        self._closes_file = bool(filename) and filename != "-"
        self.rows_written = 0
        self._write_fields(header_fields(paired))

    def close(self):
        logger.info("Closing file handle for %s...", self.filename)
        if self._closes_file:
            self._file.close()
        else:
            self._file.flush()
            # Do not close the wrapped sys.stdout buffer.
            self._file.detach()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _write_fields(self, fields):
        self._file.write("\t".join(fields) + "\n")

    def write(self, pair: AlignmentPair):
        self._write_fields(pair.fields(self.paired))
        self.rows_written += 1

    def write_all(self, pairs: Iterable[AlignmentPair]):
        for pair in pairs:
            self.write(pair)
