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

from mdsplit.errors import DesynchronizationError, MalformedTagError
from mdsplit.md import DeletionRun, MatchRun, MdCursor, MismatchBase

import pytest


def test_next_run_sequence():
    cursor = MdCursor("10A0T5^AC3")
    runs = [cursor.next_run() for _ in range(5)]
    assert runs == [MatchRun(10), MismatchBase("A"), MismatchBase("T"),
                    MatchRun(5), DeletionRun("AC")]
    assert runs[4].length == 2
    assert runs[1].length == 1


def test_next_run_exhausted():
    cursor = MdCursor("3")
    cursor.next_run()
    with pytest.raises(MalformedTagError) as error:
        cursor.next_run()
    error.match("exhausted")


def test_next_run_invalid_character():
    cursor = MdCursor("3+A")
    cursor.next_run()
    with pytest.raises(MalformedTagError) as error:
        cursor.next_run()
    error.match("Invalid MD tag")


def test_deletion_without_bases_is_malformed():
    cursor = MdCursor("2^5")
    cursor.next_run()
    with pytest.raises(MalformedTagError):
        cursor.next_run()


def test_adjacent_mismatch_letters_are_separate_runs():
    cursor = MdCursor("1AG1")
    assert cursor.consume(4) == (1, MatchRun(1))
    assert cursor.consume(3) == (1, MismatchBase("A"))
    assert cursor.consume(2) == (1, MismatchBase("G"))
    assert cursor.consume(1) == (1, MatchRun(1))
    assert cursor.is_drained()


def test_consume_partial_match_run():
    cursor = MdCursor("10")
    assert cursor.consume(4) == (4, MatchRun(4))
    assert cursor.remaining == 6
    assert cursor.consume(20) == (6, MatchRun(6))
    assert cursor.remaining == 0
    assert cursor.is_drained()


def test_consume_mismatch():
    cursor = MdCursor("2A2")
    assert cursor.consume(5) == (2, MatchRun(2))
    assert cursor.consume(3) == (1, MismatchBase("A"))
    assert cursor.consume(2) == (2, MatchRun(2))
    assert cursor.is_drained()


def test_consume_skips_zero_markers():
    cursor = MdCursor("0A0C0")
    assert cursor.consume(2) == (1, MismatchBase("A"))
    assert cursor.consume(1) == (1, MismatchBase("C"))
    assert cursor.is_drained()


def test_consume_beyond_tag():
    cursor = MdCursor("2")
    cursor.consume(2)
    with pytest.raises(MalformedTagError):
        cursor.consume(1)


def test_consume_into_deletion():
    cursor = MdCursor("2^A2")
    cursor.consume(2)
    with pytest.raises(DesynchronizationError) as error:
        cursor.consume(1)
    error.match("MD deletion")


def test_consume_must_be_positive():
    with pytest.raises(ValueError):
        MdCursor("2").consume(0)


def test_take_deletion():
    cursor = MdCursor("2^ACG1")
    cursor.consume(2)
    assert cursor.take_deletion() == "ACG"
    assert cursor.consume(1) == (1, MatchRun(1))
    assert cursor.is_drained()


def test_take_deletion_with_partial_run():
    cursor = MdCursor("5^A1")
    cursor.consume(3)
    with pytest.raises(DesynchronizationError) as error:
        cursor.take_deletion()
    error.match("2 bases")


def test_take_deletion_without_deletion():
    cursor = MdCursor("2A1")
    cursor.consume(2)
    with pytest.raises(DesynchronizationError) as error:
        cursor.take_deletion()
    error.match("Expected an MD deletion")


def test_take_deletion_from_leading_deletion():
    cursor = MdCursor("0^TT4")
    assert cursor.take_deletion() == "TT"


def test_not_drained():
    cursor = MdCursor("3A")
    cursor.consume(3)
    assert not cursor.is_drained()
    assert cursor.pending_text == "A"
