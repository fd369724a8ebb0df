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
import array
import re
import struct
import sys
import typing
from typing import Iterable, Iterator, List, Optional, Tuple

BAM_CMATCH = 0
BAM_CINS = 1
BAM_CDEL = 2
BAM_CREF_SKIP = 3
BAM_CSOFT_CLIP = 4
BAM_CHARD_CLIP = 5
BAM_CPAD = 6
BAM_CEQUAL = 7
BAM_CDIFF = 8
BAM_CIGAR_SHIFT = 4
BAM_CIGAR_MASK = 0xf

# Indexed by the BAM opcode.
CIGAR_CODES = "MIDNSHP=X"

QUERY_CONSUMING = frozenset("MIS=X")
REFERENCE_CONSUMING = frozenset("MDN=X")

_CIGAR_OPERATION = re.compile(r"(\d+)([MIDNSHP=X])")
_CIGAR_STRING = re.compile(r"(?:\d+[MIDNSHP=X])*")


class CigarOperation(typing.NamedTuple):
    length: int
    code: str

    @property
    def consumes_query(self) -> bool:
        return self.code in QUERY_CONSUMING

    @property
    def consumes_reference(self) -> bool:
        return self.code in REFERENCE_CONSUMING

    def __str__(self):
        return f"{self.length}{self.code}"


class Cigar:
    """An immutable, decoded CIGAR."""

    def __init__(self, cigar_string: str):
        if cigar_string == "*":
            cigar_string = ""
        if not _CIGAR_STRING.fullmatch(cigar_string):
            raise ValueError(f"Invalid CIGAR string: {cigar_string!r}")
        operations = []
        for length, code in _CIGAR_OPERATION.findall(cigar_string):
            length = int(length)
            if length == 0:
                raise ValueError(
                    f"Zero length operation in CIGAR string: {cigar_string!r}")
            operations.append(CigarOperation(length, code))
        self._operations: List[CigarOperation] = operations

    def __iter__(self) -> Iterator[CigarOperation]:
        return iter(self._operations)

    def __len__(self):
        return len(self._operations)

    def __getitem__(self, item):
        return self._operations[item]

    def __str__(self):
        return "".join(str(operation) for operation in self._operations)

    def __repr__(self):
        return f"{self.__class__.__name__}({str(self)!r})"

    def __eq__(self, other):
        if not isinstance(other, Cigar):
            return NotImplemented
        return self._operations == other._operations

    @property
    def number_of_operations(self) -> int:
        return len(self._operations)

    @property
    def query_length(self) -> int:
        return sum(operation.length for operation in self._operations
                   if operation.consumes_query)

    @property
    def reference_length(self) -> int:
        return sum(operation.length for operation in self._operations
                   if operation.consumes_reference)

    @property
    def raw(self) -> bytes:
        """The BAM encoding: little-endian uint32 ``length << 4 | op``."""
        return struct.pack(
            f"<{len(self._operations)}I",
            *((operation.length << BAM_CIGAR_SHIFT) |
              CIGAR_CODES.index(operation.code)
              for operation in self._operations))

    @classmethod
    def from_iter(cls, cigartuples: Iterable[Tuple[int, int]]) -> "Cigar":
        """Build from ``(opcode, length)`` tuples."""
        parts = []
        for op, length in cigartuples:
            if not 0 <= op < len(CIGAR_CODES):
                raise ValueError(f"Unsupported CIGAR opcode: {op}")
            parts.append(f"{length}{CIGAR_CODES[op]}")
        return cls("".join(parts))

    @classmethod
    def from_buffer(cls, buffer) -> "Cigar":
        view = memoryview(buffer).cast("B")
        if view.nbytes % 4:
            raise ValueError("Size of b must be a multiple of 4")
        values = array.array("I")
        values.frombytes(view.tobytes())
        if sys.byteorder == "big":
            values.byteswap()
        return cls.from_iter((value & BAM_CIGAR_MASK, value >> BAM_CIGAR_SHIFT)
                             for value in values)

    @classmethod
    def from_bytes(cls, b: bytes) -> "Cigar":
        return cls.from_buffer(b)


class CigarStream:
    """Single-pass cursor over the operations of a CIGAR string."""

    def __init__(self, cigar):
        if not isinstance(cigar, Cigar):
            cigar = Cigar(cigar)
        self._cigar = cigar
        self._index = 0

    @property
    def index(self) -> int:
        """Index of the operation the next call to ``next`` returns."""
        return self._index

    def next(self) -> Optional[CigarOperation]:
        if self._index >= len(self._cigar):
            return None
        operation = self._cigar[self._index]
        self._index += 1
        return operation

    def __iter__(self):
        return self

    def __next__(self) -> CigarOperation:
        operation = self.next()
        if operation is None:
            raise StopIteration
        return operation
