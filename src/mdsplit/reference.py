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
"""Reference base lookups for skipped (spliced) regions.

Anything callable as ``lookup(chromosome, start, end)`` returning the bases
of the 1-based, inclusive interval can serve as a reference lookup.
``FastaIndex`` implements it on top of ``pysam.FastaFile``, which reads
plain and bgzip compressed FASTA files and creates the ``.fai`` index when it
is missing.
"""

import logging
from typing import Optional

import pysam

from .errors import ReferenceLookupError

logger = logging.getLogger(__name__)


class FastaIndex:
    def __init__(self, filepath: str, index_file: Optional[str] = None):
        self.filepath = filepath
        logger.info("Opening reference %s...", filepath)
        self._fasta = pysam.FastaFile(filepath, filepath_index=index_file)

    @property
    def references(self):
        return self._fasta.references

    def close(self):
        self._fasta.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def fetch(self, chromosome: str, start: int, end: int) -> str:
        """Bases of ``chromosome`` from ``start`` to ``end``, 1-based and
        inclusive."""
        try:
            length = self._fasta.get_reference_length(chromosome)
        except KeyError as error:
            raise ReferenceLookupError(
                f"{chromosome} is not in {self.filepath}") from error
        # pysam clips intervals that run past the end of the sequence.
        if start < 1 or end < start or end > length:
            raise ReferenceLookupError(
                f"Interval {chromosome}:{start}-{end} is outside of 1-"
                f"{length}")
        try:
            return self._fasta.fetch(chromosome, start - 1, end)
        except (KeyError, ValueError, IndexError) as error:
            raise ReferenceLookupError(
                f"Cannot fetch {chromosome}:{start}-{end} from "
                f"{self.filepath}: {error}") from error

    __call__ = fetch
