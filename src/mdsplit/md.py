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
"""Decoding of the MD auxiliary tag.

The MD tag describes the reference bases under the mapped part of a read:
digit runs count matching positions, a letter is one mismatching reference
base and ``^`` followed by letters are reference bases deleted from the
read. A ``0`` separates two adjacent mismatches (or a deletion and a
mismatch) and carries no information.
"""

import collections
import logging
import re
import typing
from typing import Deque, Optional, Tuple, Union

from .errors import DesynchronizationError, MalformedTagError

logger = logging.getLogger(__name__)

_MD_TOKEN = re.compile(r"(\d+)|\^([A-Za-z]+)|([A-Za-z])")


class MatchRun(typing.NamedTuple):
    length: int


class MismatchBase(typing.NamedTuple):
    base: str

    @property
    def length(self) -> int:
        return 1


class DeletionRun(typing.NamedTuple):
    bases: str

    @property
    def length(self) -> int:
        return len(self.bases)


MdRun = Union[MatchRun, MismatchBase, DeletionRun]


class MdCursor:
    """Pull-based cursor over the runs of one MD tag.

    The current match or mismatch run can be consumed partially with
    ``consume``. Deletions are handed out whole by ``take_deletion``.
    """

    def __init__(self, tag: str):
        self.tag = tag
        self._offset = 0
        self._run: Optional[MdRun] = None
        self._remaining = 0
        self._deletions: Deque[DeletionRun] = collections.deque()

    def __repr__(self):
        return (f"{self.__class__.__name__}(tag={self.tag!r}, "
                f"offset={self._offset}, run={self._run!r}, "
                f"remaining={self._remaining})")

    @property
    def remaining(self) -> int:
        """Number of bases left in the current match or mismatch run."""
        return self._remaining

    @property
    def pending_text(self) -> str:
        return self.tag[self._offset:]

    def _skip_zero_markers(self):
        while self._offset < len(self.tag) and self.tag[self._offset] == "0":
            self._offset += 1

    def next_run(self) -> MdRun:
        self._skip_zero_markers()
        if self._offset >= len(self.tag):
            raise MalformedTagError(
                f"MD tag {self.tag!r} is exhausted but more runs are needed")
        match = _MD_TOKEN.match(self.tag, self._offset)
        if match is None:
            raise MalformedTagError(
                f"Invalid MD tag {self.tag!r} at position {self._offset}")
        self._offset = match.end()
        digits, deleted, mismatch = match.groups()
        run: MdRun
        if digits is not None:
            run = MatchRun(int(digits))
            self._run, self._remaining = run, run.length
        elif deleted is not None:
            run = DeletionRun(deleted)
            self._deletions.append(run)
            self._run, self._remaining = None, 0
        else:
            run = MismatchBase(mismatch)
            self._run, self._remaining = run, 1
        logger.debug("MD run %r, remaining tag %r", run, self.pending_text)
        return run

    def consume(self, n: int) -> Tuple[int, Union[MatchRun, MismatchBase]]:
        """Consume up to ``n`` mapped bases from the current run.

        Returns the number of bases consumed and the run they belong to:
        a ``MatchRun`` of the consumed length or the ``MismatchBase``.
        """
        if n < 1:
            raise ValueError(f"Can only consume a positive number of bases, "
                             f"got {n}")
        if self._remaining == 0:
            run = self.next_run()
            if isinstance(run, DeletionRun):
                raise DesynchronizationError(
                    f"MD deletion ^{run.bases} where the CIGAR has mapped "
                    f"bases")
        run = self._run
        count = min(n, self._remaining)
        self._remaining -= count
        if isinstance(run, MismatchBase):
            return count, run
        return count, MatchRun(count)

    def take_deletion(self) -> str:
        """Return the reference bases of the next deletion in the tag."""
        if self._remaining:
            raise DesynchronizationError(
                f"Deletion while {self._remaining} bases of MD run "
                f"{self._run!r} are not consumed")
        if not self._deletions:
            run = self.next_run()
            if not isinstance(run, DeletionRun):
                raise DesynchronizationError(
                    f"Expected an MD deletion but found {run!r}")
        return self._deletions.popleft().bases

    def is_drained(self) -> bool:
        self._skip_zero_markers()
        return (self._remaining == 0 and not self._deletions and
                self._offset >= len(self.tag))
