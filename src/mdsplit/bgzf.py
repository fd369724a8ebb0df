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

import struct
import zlib
from typing import BinaryIO, Iterator

try:
    from isal import isal_zlib
except ImportError:
    isal_zlib = None  # type: ignore

GZIP_MAGIC = b"\x1f\x8b"
GZIP_MAGIC_INT = int.from_bytes(GZIP_MAGIC, "little", signed=False)

BGZF_MAX_BLOCK_SIZE = 0x10000  # 64K, 65536. Same as bgzf.h

# XFL not set
BGZF_BASE_HEADER = b"\x1f\x8b\x08\x04\x00\x00\x00\x00\x00\xff\x06\x00\x42\x43\x02\x00"  # noqa: E501
BGZF_EOF_BLOCK = (b"\x1f\x8b\x08\x04\x00\x00\x00\x00\x00\xff\x06\x00"
                  b"\x42\x43\x02\x00\x1b\x00\x03\x00\x00\x00\x00\x00"
                  b"\x00\x00\x00\x00")


class BGZFError(IOError):
    pass


def is_bgzf(filename: str) -> bool:
    with open(filename, "rb") as file:
        header = file.read(len(BGZF_BASE_HEADER))
    # gzip magic, deflate, FEXTRA set and a BC subfield first.
    return (len(header) == len(BGZF_BASE_HEADER) and
            header[:3] == BGZF_BASE_HEADER[:3] and bool(header[3] & 4) and
            header[12:14] == b"BC")


def decompress_bgzf_blocks(file: BinaryIO) -> Iterator[bytes]:
    """Yield the decompressed contents of every non-empty BGZF block."""
    if isal_zlib:
        decompress = isal_zlib.decompress
        crc32 = isal_zlib.crc32
    else:
        decompress = zlib.decompress
        crc32 = zlib.crc32  # type: ignore
    last_block_empty = False
    while True:
        block_pos = file.tell()
        header = file.read(18)
        if not header:
            if not last_block_empty:
                raise EOFError("Truncated BGZF file. No EOF block found.")
            return
        if len(header) < 18:
            raise EOFError(f"Truncated bgzf block at: {block_pos}")
        magic, method, flags, mtime, xfl, os, xlen, si1, si2, slen, bsize = \
            struct.unpack("<HBBIBBHBBHH", header)
        if magic != GZIP_MAGIC_INT:
            raise BGZFError(f"Invalid gzip block at: {block_pos}")
        if method != 8:  # Deflate method
            raise BGZFError(f"Unsupported compression method: {method} at "
                            f"block starting at: {block_pos}")
        if not flags & 4:
            raise BGZFError(f"Gzip block should contain an extra field. "
                            f"Block starts at: {block_pos}")
        if xlen < 6:
            raise BGZFError(f"XLEN too small at {block_pos}")
        if not (si1 == 66 and si2 == 67 and slen == 2):
            raise BGZFError(f"Invalid BSIZE fields at {block_pos}")
        # Skip other xtra fields.
        file.read(xlen - 6)
        block_size = bsize - xlen - 19
        block = file.read(block_size)
        if len(block) < block_size:
            raise EOFError(f"Truncated block at: {block_pos}")
        trailer = file.read(8)
        if len(trailer) < 8:
            raise EOFError(f"Truncated block at: {block_pos}")
        crc, isize = struct.unpack("<II", trailer)
        decompressed_block = decompress(block, wbits=-zlib.MAX_WBITS,
                                        bufsize=BGZF_MAX_BLOCK_SIZE)
        if crc != crc32(decompressed_block):
            raise BGZFError(f"Checksum fail of decompressed block at: "
                            f"{block_pos}")
        if isize != len(decompressed_block):
            raise BGZFError(f"Incorrect length of decompressed block at: "
                            f"{block_pos}")
        # Empty blocks in the middle of the file are skipped. An empty block
        # at the end is the EOF marker.
        last_block_empty = not decompressed_block
        if decompressed_block:
            yield decompressed_block


class BGZFReader:
    def __init__(self, filename: str):
        self._file = open(filename, "rb")
        self._blocks = decompress_bgzf_blocks(self._file)
        self._block = b""
        self._block_offset = 0

    def close(self):
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __iter__(self) -> Iterator[bytes]:
        """Iterate over the decompressed data block by block."""
        if self._block_offset < len(self._block):
            yield self._block[self._block_offset:]
        self._block = b""
        self._block_offset = 0
        yield from self._blocks

    def read(self, size: int = -1) -> bytes:
        if size < 0:
            return b"".join(self)
        chunks = []
        while size > 0:
            if self._block_offset == len(self._block):
                self._block = next(self._blocks, b"")
                self._block_offset = 0
                if not self._block:
                    break
            chunk = self._block[self._block_offset:self._block_offset + size]
            self._block_offset += len(chunk)
            size -= len(chunk)
            chunks.append(chunk)
        return b"".join(chunks)
