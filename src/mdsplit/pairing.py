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
"""Grouping of reconstructed mates into output rows."""

import logging
from typing import Iterable, Iterator, List, Optional

from .align import AlignmentReconciler, AlignmentRecord
from .errors import MatePairingError, ReconciliationError
from .sam import SamRecord

logger = logging.getLogger(__name__)

MATE_FIELDS = ("align_seq", "align_ref", "align_phred",
               "split_S_seq", "split_S_phred",
               "split_I_seq", "split_I_phred",
               "split_=_seq", "split_=_phred",
               "split_X_seq", "split_X_ref", "split_X_phred")


def header_fields(paired: bool = True) -> List[str]:
    mates = (1, 2) if paired else (1,)
    return ["ReadID"] + [f"R{mate}_{field}"
                         for mate in mates for field in MATE_FIELDS]


class AlignmentPair:
    """Up to two reconstructed mates of one read."""

    def __init__(self, first: Optional[AlignmentRecord] = None,
                 second: Optional[AlignmentRecord] = None):
        if first is None and second is None:
            raise ValueError("An alignment pair needs at least one mate")
        self.first = first
        self.second = second

    def __repr__(self):
        return (f"{self.__class__.__name__}(first={self.first!r}, "
                f"second={self.second!r})")

    @property
    def read_id(self) -> str:
        mate = self.first if self.first is not None else self.second
        return mate.read_id  # type: ignore

    def fields(self, paired: bool = True) -> List[str]:
        row = [self.read_id]
        mates = (self.first, self.second) if paired else (self.first,)
        for mate in mates:
            if mate is None:
                row.extend([""] * len(MATE_FIELDS))
            else:
                row.extend(mate.fields())
        return row


class MatePairAssembler:
    """Pairs adjacent records with the same read identifier.

    The input must be grouped by read name. Records without an MD tag are
    skipped with a warning. With ``skip_invalid`` a pair that fails to
    reconcile is logged and dropped, otherwise the error propagates.
    """

    def __init__(self, reconciler: AlignmentReconciler,
                 single_end: bool = False, skip_invalid: bool = False):
        self.reconciler = reconciler
        self.single_end = single_end
        self.skip_invalid = skip_invalid
        self._held: Optional[SamRecord] = None
        self.skipped = 0

    @property
    def holding(self) -> bool:
        return self._held is not None

    def _build(self, *records: SamRecord) -> Optional[AlignmentPair]:
        mates = {}
        try:
            for record in records:
                if record.mate in mates:
                    raise MatePairingError(
                        f"two records for mate {record.mate}",
                        read_id=record.read_id)
                mates[record.mate] = self.reconciler.reconcile(record)
        except ReconciliationError as error:
            if not self.skip_invalid:
                raise
            logger.error("Skipping %s: %s", records[0].read_id, error)
            self.skipped += 1
            return None
        return AlignmentPair(mates.get(1), mates.get(2))

    def push(self, record: SamRecord) -> List[AlignmentPair]:
        """Feed one record, return the pairs that are complete because of
        it."""
        if record.md is None:
            logger.warning("%s has no MD tag! Skipping it...",
                           record.read_id)
            return []
        logger.debug("%s mate %d %s:%d %s %s", record.read_id, record.mate,
                     record.chromosome, record.position, record.cigar,
                     record.md)
        if self.single_end:
            record = record._replace(mate=1)
            records = (record,)
        elif self._held is None:
            self._held = record
            return []
        elif self._held.read_id == record.read_id:
            records = (self._held, record)
            self._held = None
        else:
            records = (self._held,)
            self._held = record
        pair = self._build(*records)
        return [pair] if pair is not None else []

    def flush(self) -> List[AlignmentPair]:
        if self._held is None:
            return []
        held, self._held = self._held, None
        pair = self._build(held)
        return [pair] if pair is not None else []

    def assemble(self, records: Iterable[SamRecord]
                 ) -> Iterator[AlignmentPair]:
        for record in records:
            yield from self.push(record)
        yield from self.flush()
