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

from mdsplit.bgzf import BGZF_BASE_HEADER, BGZF_EOF_BLOCK

import pytest


def bgzf_block(data: bytes) -> bytes:
    compressobj = zlib.compressobj(1, wbits=-zlib.MAX_WBITS)
    compressed = compressobj.compress(data) + compressobj.flush()
    return (BGZF_BASE_HEADER + struct.pack("<H", len(compressed) + 25) +
            compressed + struct.pack("<II", zlib.crc32(data), len(data)))


def bgzf_compress(data: bytes, block_size: int = 0xff00) -> bytes:
    blocks = [bgzf_block(data[i:i + block_size])
              for i in range(0, len(data), block_size)]
    return b"".join(blocks) + BGZF_EOF_BLOCK


@pytest.fixture
def write_bgzf(tmp_path):
    def write(name: str, data: bytes, block_size: int = 0xff00) -> str:
        path = tmp_path / name
        path.write_bytes(bgzf_compress(data, block_size))
        return str(path)
    return write


@pytest.fixture
def make_bgzf_block():
    return bgzf_block
