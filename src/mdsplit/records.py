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
"""The record source: SAM or BAM input, primary alignments only."""

import logging
import os
import subprocess
from typing import Callable, Iterator, List

from .bam import BamReader
from .bgzf import is_bgzf
from .sam import SamReader, SamRecord

logger = logging.getLogger(__name__)

NameSorter = Callable[[str, str], None]


class NameSortError(RuntimeError):
    pass


def samtools_name_sorter(threads: int = 1) -> NameSorter:
    def sort(input_file: str, output_file: str):
        command: List[str] = ["samtools", "sort", "-n", "-@", str(threads),
                              "-o", output_file, input_file]
        logger.debug("Running %s", " ".join(command))
        try:
            subprocess.run(command, check=True)
        except (OSError, subprocess.CalledProcessError) as error:
            raise NameSortError(
                f"Error happened when sorting {input_file}: {error}"
            ) from error
    return sort


def name_sorted_path(filename: str) -> str:
    stem, extension = os.path.splitext(filename)
    return f"{stem}.nameSorted{extension}"


def name_sort(filename: str, sorter: NameSorter) -> str:
    sorted_file = name_sorted_path(filename)
    logger.warning("%s is not name sorted. Name sorting it and saving to "
                   "%s...", filename, sorted_file)
    if os.path.exists(sorted_file):
        logger.warning("%s exists already! It will be overwritten.",
                       sorted_file)
    sorter(filename, sorted_file)
    return sorted_file


def read_records(filename: str) -> Iterator[SamRecord]:
    """Yield the primary alignments from a SAM or BAM file."""
    extension = os.path.splitext(filename)[1].lower()
    if extension == ".bam":
        if not is_bgzf(filename):
            raise ValueError(f"{filename} is not BGZF compressed")
        reader = BamReader(filename)
    elif extension == ".sam":
        reader = SamReader(filename)
    else:
        raise ValueError(f"{filename} does not look like SAM or BAM")
    logger.info("Opening %s...", filename)
    with reader:
        for record in reader:
            if not record.is_primary:
                continue
            yield record
    logger.info("Closing %s...", filename)
