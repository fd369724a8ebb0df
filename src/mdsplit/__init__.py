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
"""Split aligned reads into soft-clipped, inserted, matched and mismatched
bases according to their CIGAR string and MD tag."""

from .align import (ABSENT_SENTINEL, INSERTION, MATCH, MATCH_SENTINEL,
                    MISMATCH, SOFT_CLIP, UNKNOWN_SENTINEL, AlignmentReconciler,
                    AlignmentRecord, Segment)
from .cigar import Cigar, CigarOperation, CigarStream
from .errors import (DesynchronizationError, MalformedTagError,
                     MatePairingError, ReconciliationError,
                     ReferenceLookupError)
from .md import DeletionRun, MatchRun, MdCursor, MismatchBase
from .pairing import AlignmentPair, MatePairAssembler, header_fields
from .sam import SamRecord

__version__ = "0.1.0-dev"

__all__ = [
    "ABSENT_SENTINEL",
    "INSERTION",
    "MATCH",
    "MATCH_SENTINEL",
    "MISMATCH",
    "SOFT_CLIP",
    "UNKNOWN_SENTINEL",
    "AlignmentPair",
    "AlignmentReconciler",
    "AlignmentRecord",
    "Cigar",
    "CigarOperation",
    "CigarStream",
    "DeletionRun",
    "DesynchronizationError",
    "MalformedTagError",
    "MatchRun",
    "MatePairAssembler",
    "MatePairingError",
    "MdCursor",
    "MismatchBase",
    "ReconciliationError",
    "ReferenceLookupError",
    "SamRecord",
    "Segment",
    "header_fields",
]
