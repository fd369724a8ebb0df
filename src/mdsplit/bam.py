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
"""A pure Python reader for BAM files, yielding SamRecord tuples."""

import logging
import struct
import typing
from typing import Dict, Iterator, List

from .bgzf import BGZFReader
from .cigar import Cigar
from .sam import SamRecord, mate_from_flag

logger = logging.getLogger(__name__)

BAM_MAGIC = b"BAM\1"
BAM_RECORD_STRUCT = struct.Struct("<iiBBHHHIiii")

_SEQ_CODES = "=ACMGRSVTWYHKDBN"
# Every byte holds two bases.
_SEQ_BYTE_TO_BASES = [first + second
                      for first in _SEQ_CODES for second in _SEQ_CODES]
_PHRED_TO_ASCII = bytes((value + 33) % 256 for value in range(256))

_AUX_SCALAR_FORMATS = {
    "A": "c", "c": "b", "C": "B", "s": "h", "S": "H", "i": "i", "I": "I",
    "f": "f",
}


class BAMFormatError(ValueError):
    pass


class BamReference(typing.NamedTuple):
    name: str
    length: int


def decode_sequence(raw: bytes, length: int) -> str:
    return "".join(_SEQ_BYTE_TO_BASES[byte] for byte in raw)[:length]


def decode_qualities(raw: bytes) -> str:
    if raw and raw[0] == 0xff:
        return "*"
    return raw.translate(_PHRED_TO_ASCII).decode("latin-1")


def parse_tags(raw: bytes) -> Dict[str, object]:
    """Decode the auxiliary data of a BAM record into a tag: value dict."""
    tags: Dict[str, object] = {}
    offset = 0
    end = len(raw)
    while offset < end:
        if offset + 3 > end:
            raise BAMFormatError(f"Truncated tag at offset {offset}")
        tag = raw[offset:offset + 2].decode("ascii")
        value_type = chr(raw[offset + 2])
        offset += 3
        value: object
        if value_type in "ZH":
            terminator = raw.find(b"\x00", offset)
            if terminator == -1:
                raise BAMFormatError(f"Unterminated string in tag {tag}")
            value = raw[offset:terminator].decode("latin-1")
            offset = terminator + 1
        elif value_type == "B":
            subtype = chr(raw[offset])
            count, = struct.unpack_from("<i", raw, offset + 1)
            offset += 5
            fmt = _AUX_SCALAR_FORMATS.get(subtype)
            if fmt is None or subtype == "A":
                raise BAMFormatError(
                    f"Invalid array subtype {subtype!r} in tag {tag}")
            size = struct.calcsize("<" + fmt) * count
            value = list(struct.unpack_from(f"<{count}{fmt}", raw, offset))
            offset += size
        elif value_type in _AUX_SCALAR_FORMATS:
            fmt = "<" + _AUX_SCALAR_FORMATS[value_type]
            value, = struct.unpack_from(fmt, raw, offset)
            offset += struct.calcsize(fmt)
            if value_type == "A":
                value = value.decode("ascii")
        else:
            raise BAMFormatError(f"Invalid value type {value_type!r} "
                                 f"in tag {tag}")
        tags[tag] = value
    return tags


class BamReader:
    def __init__(self, filename: str):
        self.filename = filename
        self._file = BGZFReader(filename)
        self.header = ""
        self.references: List[BamReference] = []
        self._read_header()

    def close(self):
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _read_header(self):
        if self._file.read(4) != BAM_MAGIC:
            raise BAMFormatError(f"{self.filename} is not a BAM file")
        header_size, = struct.unpack("<I", self._file.read(4))
        self.header = self._file.read(header_size).decode("ascii")
        number_of_references, = struct.unpack("<I", self._file.read(4))
        for i in range(number_of_references):
            name_length, = struct.unpack("<I", self._file.read(4))
            # Names are NUL terminated.
            name = self._file.read(name_length)[:-1]
            seq_len, = struct.unpack("<I", self._file.read(4))
            self.references.append(BamReference(name.decode('ascii'), seq_len))
        logger.debug("Read BAM header of %s with %d references",
                     self.filename, len(self.references))

    def _reference_name(self, reference_id: int) -> str:
        if reference_id == -1:
            return "*"
        try:
            return self.references[reference_id].name
        except IndexError:
            raise BAMFormatError(
                f"Reference id {reference_id} not in header of "
                f"{self.filename}")

    def _decode_record(self, data: bytes) -> SamRecord:
        (reference_id, pos, l_read_name, mapq, bin, n_cigar_op, flag, l_seq,
         next_reference_id, next_pos, tlen) = BAM_RECORD_STRUCT.unpack_from(
            data)
        offset = BAM_RECORD_STRUCT.size
        read_name = data[offset:offset + l_read_name - 1].decode("ascii")
        offset += l_read_name
        cigar = Cigar.from_bytes(data[offset:offset + 4 * n_cigar_op])
        offset += 4 * n_cigar_op
        sequence_size = (l_seq + 1) // 2
        sequence = decode_sequence(data[offset:offset + sequence_size], l_seq)
        offset += sequence_size
        qualities = decode_qualities(data[offset:offset + l_seq])
        offset += l_seq
        tags = parse_tags(data[offset:])
        if ("CG" in tags and len(cigar) == 2 and
                cigar[0].code == "S" and cigar[0].length == l_seq and
                cigar[1].code == "N"):
            # The real CIGAR did not fit in the 16 bit n_cigar_op field.
            cigar = Cigar.from_iter(
                (value & 0xf, value >> 4) for value in tags["CG"])
        md = tags.get("MD")
        return SamRecord(
            read_id=read_name,
            mate=mate_from_flag(flag),
            chromosome=self._reference_name(reference_id),
            position=pos + 1,
            cigar=str(cigar) or "*",
            sequence=sequence or "*",
            qualities=qualities or "*",
            md=md if isinstance(md, str) else None,
            flag=flag,
        )

    def __iter__(self) -> Iterator[SamRecord]:
        while True:
            block_size_bytes = self._file.read(4)
            if not block_size_bytes:
                return
            if len(block_size_bytes) < 4:
                raise EOFError(f"Truncated BAM record in {self.filename}")
            block_size, = struct.unpack("<I", block_size_bytes)
            data = self._file.read(block_size)
            if len(data) < block_size:
                raise EOFError(f"Truncated BAM record in {self.filename}")
            yield self._decode_record(data)
