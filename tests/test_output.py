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

import gzip

from mdsplit.align import AlignmentReconciler
from mdsplit.output import RowWriter
from mdsplit.pairing import AlignmentPair, header_fields
from mdsplit.sam import SamRecord

import pytest


@pytest.fixture
def pair() -> AlignmentPair:
    read = SamRecord("read1", 1, "chr1", 1, "1S3M", "TACT", "ABCD", "1G1")
    return AlignmentPair(AlignmentReconciler().reconcile(read))


def test_row_writer_paired(tmp_path, pair):
    path = tmp_path / "out.txt"
    with RowWriter(str(path)) as writer:
        writer.write(pair)
        assert writer.rows_written == 1
    header, row = path.read_text().splitlines()
    assert header.split("\t") == header_fields()
    assert row.split("\t") == (
        ["read1", "TACT", "*=G=", "ABCD", "T", "A", "", "", "A,T", "B,D",
         "C", "G", "C"] + [""] * 12)


def test_row_writer_single_end(tmp_path, pair):
    path = tmp_path / "out.txt"
    with RowWriter(str(path), paired=False) as writer:
        writer.write_all([pair, pair])
    lines = path.read_text().splitlines()
    assert len(lines) == 3
    assert all(len(line.split("\t")) == 13 for line in lines)


def test_row_writer_gzip(tmp_path, pair):
    path = tmp_path / "out.txt.gz"
    with RowWriter(str(path)) as writer:
        writer.write(pair)
    with gzip.open(str(path), "rt") as file:
        lines = file.read().splitlines()
    assert lines[1].startswith("read1\tTACT\t")


def test_row_writer_stdout(capsys, pair):
    with RowWriter() as writer:
        writer.write(pair)
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("ReadID\tR1_align_seq")
    assert lines[1].startswith("read1\t")
