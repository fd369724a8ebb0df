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

import logging
import typing
from typing import Iterable, Iterator, List, Optional, TextIO

logger = logging.getLogger(__name__)

BAM_FPAIRED = 0x1
BAM_FREAD1 = 0x40
BAM_FREAD2 = 0x80
BAM_FSECONDARY = 0x100
BAM_FSUPPLEMENTARY = 0x800

SAM_MANDATORY_FIELDS = 11


class SAMFormatError(ValueError):
    pass


class SamRecord(typing.NamedTuple):
    read_id: str
    mate: int
    chromosome: str
    position: int
    cigar: str
    sequence: str
    qualities: str
    md: Optional[str]
    flag: int = 0

    @property
    def is_primary(self) -> bool:
        return not self.flag & (BAM_FSECONDARY | BAM_FSUPPLEMENTARY)


def mate_from_flag(flag: int) -> int:
    return 1 if flag & BAM_FREAD1 else 2


def get_md(tags: Iterable[str]) -> Optional[str]:
    """Return the value of the single MD tag, ``None`` when absent."""
    md_tags = [tag for tag in tags if tag.startswith("MD:")]
    if len(md_tags) != 1:
        return None
    # MD:Z:<value>
    return md_tags[0][5:]


def parse_sam_line(line: str) -> SamRecord:
    fields: List[str] = line.rstrip("\r\n").split("\t")
    if len(fields) < SAM_MANDATORY_FIELDS:
        raise SAMFormatError(
            f"SAM line has {len(fields)} fields, at least "
            f"{SAM_MANDATORY_FIELDS} are required: {line!r}")
    try:
        flag = int(fields[1])
        position = int(fields[3])
    except ValueError as error:
        raise SAMFormatError(f"Invalid SAM line: {line!r}") from error
    return SamRecord(
        read_id=fields[0],
        mate=mate_from_flag(flag),
        chromosome=fields[2],
        position=position,
        cigar=fields[5],
        sequence=fields[9],
        qualities=fields[10],
        md=get_md(fields[SAM_MANDATORY_FIELDS:]),
        flag=flag,
    )


class SamReader:
    def __init__(self, filename: str):
        self._file: TextIO = open(filename, "rt")

    def close(self):
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __iter__(self) -> Iterator[SamRecord]:
        for line in self._file:
            if line.startswith("@"):
                continue
            if not line.strip():
                continue
            yield parse_sam_line(line)
