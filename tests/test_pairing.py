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

from mdsplit.align import AlignmentReconciler
from mdsplit.errors import MatePairingError, MalformedTagError
from mdsplit.pairing import MATE_FIELDS, AlignmentPair, MatePairAssembler, \
    header_fields
from mdsplit.sam import SamRecord

import pytest


def make_read(read_id, mate, md="4", cigar="4M", sequence="ACGT"):
    return SamRecord(read_id, mate, "chr1", 10, cigar, sequence, "IIII", md)


@pytest.fixture
def assembler() -> MatePairAssembler:
    return MatePairAssembler(AlignmentReconciler())


def test_header_fields_paired():
    fields = header_fields()
    assert len(fields) == 25
    assert fields[0] == "ReadID"
    assert fields[1] == "R1_align_seq"
    assert fields[12] == "R1_split_X_phred"
    assert fields[13] == "R2_align_seq"


def test_header_fields_single_end():
    fields = header_fields(paired=False)
    assert len(fields) == 13
    assert fields[-1] == "R1_split_X_phred"


def test_pairs_adjacent_mates(assembler):
    pairs = list(assembler.assemble([make_read("a", 1), make_read("a", 2)]))
    assert len(pairs) == 1
    assert pairs[0].read_id == "a"
    assert pairs[0].first.mate == 1
    assert pairs[0].second.mate == 2


def test_pairs_by_mate_role(assembler):
    pairs = list(assembler.assemble([make_read("a", 2, sequence="TTTT"),
                                     make_read("a", 1)]))
    assert pairs[0].first.aligned_query == "ACGT"
    assert pairs[0].second.aligned_query == "TTTT"


def test_state_machine(assembler):
    assert assembler.push(make_read("a", 1)) == []
    assert assembler.holding
    orphans = assembler.push(make_read("b", 1))
    assert [pair.read_id for pair in orphans] == ["a"]
    assert assembler.holding
    pairs = assembler.push(make_read("b", 2))
    assert [pair.read_id for pair in pairs] == ["b"]
    assert not assembler.holding
    assert assembler.flush() == []


def test_orphans(assembler):
    records = [make_read("a", 1), make_read("b", 2), make_read("b", 1),
               make_read("c", 2)]
    pairs = list(assembler.assemble(records))
    assert [pair.read_id for pair in pairs] == ["a", "b", "c"]
    assert pairs[0].second is None
    assert pairs[2].first is None


def test_unpaired_mate_row(assembler):
    pair, = assembler.assemble([make_read("c", 2)])
    row = pair.fields()
    assert len(row) == 25
    assert row[0] == "c"
    assert row[1:13] == [""] * 12
    assert row[13:16] == ["ACGT", "====", "IIII"]


def test_missing_md_is_skipped(assembler, caplog):
    records = [make_read("a", 1), make_read("a", 2, md=None)]
    pairs = list(assembler.assemble(records))
    assert len(pairs) == 1
    assert pairs[0].second is None
    assert "a has no MD tag" in caplog.text


def test_single_end():
    assembler = MatePairAssembler(AlignmentReconciler(), single_end=True)
    pairs = list(assembler.assemble([make_read("a", 1), make_read("a", 2)]))
    assert len(pairs) == 2
    assert all(pair.first is not None and pair.second is None
               for pair in pairs)
    assert len(pairs[1].fields(paired=False)) == 1 + len(MATE_FIELDS)


def test_same_mate_twice(assembler):
    with pytest.raises(MatePairingError) as error:
        list(assembler.assemble([make_read("a", 1), make_read("a", 1)]))
    error.match("two records for mate 1")


def test_invalid_record_propagates(assembler):
    with pytest.raises(MalformedTagError) as error:
        list(assembler.assemble([make_read("a", 1, md="3"),
                                 make_read("a", 2)]))
    assert error.value.read_id == "a"


def test_skip_invalid(caplog):
    assembler = MatePairAssembler(AlignmentReconciler(), skip_invalid=True)
    records = [make_read("a", 1, md="3"), make_read("a", 2),
               make_read("b", 1)]
    pairs = list(assembler.assemble(records))
    assert [pair.read_id for pair in pairs] == ["b"]
    assert assembler.skipped == 1
    assert "Skipping a" in caplog.text


def test_alignment_pair_needs_a_mate():
    with pytest.raises(ValueError):
        AlignmentPair()
