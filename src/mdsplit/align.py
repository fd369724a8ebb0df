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
"""Reconstruction of the full alignment of one read.

The CIGAR drives the walk. For mapped operations the MD cursor decides, chunk
by chunk, whether the bases match the reference or not. Every query base ends
up in exactly one split category and every column of the three aligned
strings is filled in lockstep.
"""

import logging
import typing
from typing import Callable, Dict, List, Optional

from .cigar import CigarOperation, CigarStream
from .errors import (DesynchronizationError, MalformedTagError,
                     ReconciliationError, ReferenceLookupError)
from .md import MdCursor, MismatchBase

logger = logging.getLogger(__name__)

MATCH_SENTINEL = "="
UNKNOWN_SENTINEL = "*"
ABSENT_SENTINEL = "~"

SOFT_CLIP = "S"
INSERTION = "I"
MATCH = "="
MISMATCH = "X"
SPLIT_CATEGORIES = (SOFT_CLIP, INSERTION, MATCH, MISMATCH)

ReferenceLookup = Callable[[str, int, int], str]


class Segment(typing.NamedTuple):
    category: str
    sequence: str
    qualities: str
    reference: str = ""


class AlignmentRecord:
    """The reconstructed alignment of one mate.

    ``position`` starts at the 1-based alignment start and moves forward as
    reference-consuming operations are processed. The query sequence and
    qualities are read through an offset, ``unconsumed_sequence`` and
    ``unconsumed_qualities`` are what is left of them.
    """

    def __init__(self, read_id: str, mate: int, chromosome: str,
                 position: int, sequence: str, qualities: str):
        if len(sequence) != len(qualities):
            raise ValueError(
                f"Read {read_id}: sequence and qualities must have the same "
                f"length ({len(sequence)} != {len(qualities)})")
        self.read_id = read_id
        self.mate = mate
        self.chromosome = chromosome
        self.start = position
        self.position = position
        self._sequence = sequence
        self._qualities = qualities
        self._offset = 0
        self.segments: List[Segment] = []
        self._aligned_query: List[str] = []
        self._aligned_reference: List[str] = []
        self._aligned_qualities: List[str] = []
        self._aligned_length = 0

    def __repr__(self):
        return (f"{self.__class__.__name__}(read_id={self.read_id!r}, "
                f"mate={self.mate}, chromosome={self.chromosome!r}, "
                f"start={self.start})")

    @property
    def unconsumed_sequence(self) -> str:
        return self._sequence[self._offset:]

    @property
    def unconsumed_qualities(self) -> str:
        return self._qualities[self._offset:]

    @property
    def aligned_query(self) -> str:
        return "".join(self._aligned_query)

    @property
    def aligned_reference(self) -> str:
        return "".join(self._aligned_reference)

    @property
    def aligned_qualities(self) -> str:
        return "".join(self._aligned_qualities)

    def __len__(self):
        return self._aligned_length

    def take(self, length: int):
        """Consume ``length`` bases from the front of the read."""
        end = self._offset + length
        if end > len(self._sequence):
            raise MalformedTagError(
                f"CIGAR needs {end} query bases but the read only has "
                f"{len(self._sequence)}")
        sequence = self._sequence[self._offset:end]
        qualities = self._qualities[self._offset:end]
        self._offset = end
        return sequence, qualities

    def extend(self, query: str, reference: str, qualities: str):
        if not len(query) == len(reference) == len(qualities):
            raise ValueError("Aligned columns must have the same length")
        self._aligned_query.append(query)
        self._aligned_reference.append(reference)
        self._aligned_qualities.append(qualities)
        self._aligned_length += len(query)

    def add_segment(self, segment: Segment):
        self.segments.append(segment)

    def splits(self, category: str) -> List[str]:
        return [segment.sequence for segment in self.segments
                if segment.category == category]

    def quality_splits(self, category: str) -> List[str]:
        return [segment.qualities for segment in self.segments
                if segment.category == category]

    @property
    def mismatch_reference_splits(self) -> List[str]:
        return [segment.reference for segment in self.segments
                if segment.category == MISMATCH]

    def split_table(self) -> Dict[str, List[str]]:
        return {category: self.splits(category)
                for category in SPLIT_CATEGORIES}

    def fields(self, separator: str = ",") -> List[str]:
        """The twelve output columns of this mate."""
        fields = [self.aligned_query, self.aligned_reference,
                  self.aligned_qualities]
        for category in (SOFT_CLIP, INSERTION, MATCH):
            fields.append(separator.join(self.splits(category)))
            fields.append(separator.join(self.quality_splits(category)))
        fields.append(separator.join(self.splits(MISMATCH)))
        fields.append(separator.join(self.mismatch_reference_splits))
        fields.append(separator.join(self.quality_splits(MISMATCH)))
        return fields


class AlignmentReconciler:
    """Walks a CIGAR and an MD tag together to build an AlignmentRecord.

    ``splice`` makes skipped regions (``N``) visible in the aligned strings,
    using ``reference_lookup(chromosome, start, end)`` with 1-based
    inclusive coordinates to fetch the skipped reference bases.
    """

    def __init__(self, splice: bool = False,
                 reference_lookup: Optional[ReferenceLookup] = None):
        if splice and reference_lookup is None:
            raise ValueError("splice mode requires a reference lookup")
        self.splice = splice
        self.reference_lookup = reference_lookup

    def reconcile(self, read) -> AlignmentRecord:
        """Reconcile a record with ``read_id``, ``mate``, ``chromosome``,
        ``position``, ``cigar``, ``sequence``, ``qualities`` and ``md``."""
        if len(read.sequence) != len(read.qualities):
            raise ReconciliationError(
                "sequence and qualities must have the same length",
                read_id=read.read_id)
        try:
            cigar = CigarStream(read.cigar)
        except ValueError as error:
            raise ReconciliationError(str(error),
                                      read_id=read.read_id) from error
        record = AlignmentRecord(read.read_id, read.mate, read.chromosome,
                                 read.position, read.sequence, read.qualities)
        md = MdCursor(read.md)
        try:
            while True:
                operation = cigar.next()
                if operation is None:
                    break
                self._apply(record, operation, md)
            if record.unconsumed_sequence:
                raise MalformedTagError(
                    f"{len(record.unconsumed_sequence)} query bases are not "
                    f"covered by CIGAR {read.cigar}")
            if not md.is_drained():
                raise MalformedTagError(
                    f"MD tag {read.md!r} is not exhausted at the end of "
                    f"CIGAR {read.cigar}, {md.pending_text!r} remains")
        except ReconciliationError as error:
            if error.read_id is None:
                error.read_id = read.read_id
            if error.operation_index is None:
                error.operation_index = max(cigar.index - 1, 0)
            raise
        logger.debug("Reconciled %s mate %d into %d aligned columns",
                     record.read_id, record.mate, len(record))
        return record

    def _apply(self, record: AlignmentRecord, operation: CigarOperation,
               md: MdCursor):
        length, code = operation
        if code == "S":
            sequence, qualities = record.take(length)
            record.add_segment(Segment(SOFT_CLIP, sequence, qualities))
            record.extend(sequence, UNKNOWN_SENTINEL * length, qualities)
            record.position += length
        elif code == "I":
            sequence, qualities = record.take(length)
            record.add_segment(Segment(INSERTION, sequence, qualities))
            record.extend(sequence, ABSENT_SENTINEL * length, qualities)
        elif code == "D":
            deleted = md.take_deletion()
            if len(deleted) != length:
                raise DesynchronizationError(
                    f"CIGAR deletion of {length} bases but MD deletion "
                    f"^{deleted} has {len(deleted)}")
            placeholder = ABSENT_SENTINEL * length
            record.extend(placeholder, deleted, placeholder)
            record.position += length
        elif code in "M=X":
            self._apply_mapped(record, length, md)
            record.position += length
        elif code == "N":
            if self.splice:
                self._apply_skip(record, length)
            record.position += length
        else:
            logger.warning("Read %s has a %s operation, which is ignored",
                           record.read_id, operation)

    @staticmethod
    def _apply_mapped(record: AlignmentRecord, length: int, md: MdCursor):
        remaining = length
        while remaining > 0:
            count, chunk = md.consume(remaining)
            sequence, qualities = record.take(count)
            if isinstance(chunk, MismatchBase):
                record.add_segment(
                    Segment(MISMATCH, sequence, qualities, chunk.base))
                record.extend(sequence, chunk.base, qualities)
            else:
                record.add_segment(Segment(MATCH, sequence, qualities))
                record.extend(sequence, MATCH_SENTINEL * count, qualities)
            remaining -= count

    def _apply_skip(self, record: AlignmentRecord, length: int):
        start = record.position
        end = start + length - 1
        try:
            bases = self.reference_lookup(record.chromosome, start, end)
        except ReferenceLookupError:
            raise
        except (LookupError, OSError, ValueError) as error:
            raise ReferenceLookupError(
                f"Cannot fetch {record.chromosome}:{start}-{end}: "
                f"{error}") from error
        if len(bases) != length:
            raise ReferenceLookupError(
                f"Reference lookup for {record.chromosome}:{start}-{end} "
                f"returned {len(bases)} bases instead of {length}")
        placeholder = ABSENT_SENTINEL * length
        record.extend(placeholder, bases, placeholder)
