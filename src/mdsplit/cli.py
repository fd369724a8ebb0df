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

import argparse
import logging
import os
import sys
from typing import List, Optional

from . import __version__
from .align import AlignmentReconciler
from .errors import ReconciliationError
from .output import RowWriter
from .pairing import MatePairAssembler
from .records import NameSortError, name_sort, read_records, \
    samtools_name_sorter
from .reference import FastaIndex

logger = logging.getLogger(__name__)

LOG_LEVELS = ("critical", "error", "warning", "info", "debug")

DESCRIPTION = """\
Splits query sequence and phred scores into softclip (S), insertion (I),
match (=) and mismatch (X) according to CIGAR and tag MD. The output is a
table with 13 (SE) or 25 (PE) columns: read ID, aligned query, aligned
reference and aligned phred scores, then the query and phred splits of every
category (plus the reference bases of the mismatches) joined by commas.
"""


def argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=DESCRIPTION)
    parser.add_argument("-i", "--input", required=True,
                        help="BAM or SAM input. Paired-end input that is not "
                             "--name-sorted is name sorted with samtools "
                             "first.")
    parser.add_argument("-o", "--output",
                        help="Output file, STDOUT by default. Compressed "
                             "when it ends with '.gz'.")
    parser.add_argument("--end-type", choices=("PE", "SE"), default="PE",
                        help="Paired-end or single-end data (default: "
                             "%(default)s).")
    parser.add_argument("--name-sorted", action="store_true",
                        help="The input is already sorted by read name.")
    parser.add_argument("--threads", "--ncores", type=int, default=1,
                        help="Number of threads used for name sorting "
                             "(default: %(default)s).")
    parser.add_argument("--splice", action="store_true",
                        help="Output the skipped reference bases of spliced "
                             "regions ('N'). Requires --reference.")
    parser.add_argument("--reference",
                        help="Reference genome FASTA, required by --splice.")
    parser.add_argument("--skip-invalid", action="store_true",
                        help="Log and skip reads that cannot be reconciled "
                             "instead of stopping.")
    parser.add_argument("--log-level", choices=LOG_LEVELS, default="info",
                        help="Logging level (default: %(default)s).")
    parser.add_argument("-v", "--version", action="version",
                        version=f"%(prog)s {__version__}")
    return parser


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argument_parser()
    arguments = parser.parse_args(args)
    if not os.path.exists(arguments.input):
        parser.error("--input does not exist!")
    if not arguments.input.lower().endswith((".sam", ".bam")):
        parser.error("--input does not look like SAM or BAM!")
    if arguments.splice and (arguments.reference is None or
                             not os.path.exists(arguments.reference)):
        parser.error("--reference is missing or file not found!")
    if arguments.threads < 1:
        parser.error("--threads must be at least 1")
    return arguments


def run(arguments: argparse.Namespace) -> int:
    paired = arguments.end_type == "PE"
    input_file = arguments.input
    if paired and not arguments.name_sorted:
        input_file = name_sort(input_file,
                               samtools_name_sorter(arguments.threads))
    reference = None
    if arguments.splice:
        reference = FastaIndex(arguments.reference)
    try:
        reconciler = AlignmentReconciler(splice=arguments.splice,
                                         reference_lookup=reference)
        assembler = MatePairAssembler(reconciler, single_end=not paired,
                                      skip_invalid=arguments.skip_invalid)
        with RowWriter(arguments.output, paired=paired) as writer:
            writer.write_all(assembler.assemble(read_records(input_file)))
    finally:
        if reference is not None:
            reference.close()
    if assembler.skipped:
        logger.warning("Skipped %d reads that could not be reconciled.",
                       assembler.skipped)
    logger.info("Wrote %d rows.", writer.rows_written)
    return 0


def main(args: Optional[List[str]] = None):
    arguments = parse_args(args)
    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        level=getattr(logging, arguments.log_level.upper()),
        stream=sys.stderr)
    logger.info("Arguments: %s", vars(arguments))
    try:
        status = run(arguments)
    # SAMFormatError, BAMFormatError and BGZFError are ValueError and
    # OSError subclasses. OSError also covers unreadable references.
    except (ReconciliationError, NameSortError, EOFError, OSError,
            ValueError) as error:
        logger.error("%s", error)
        status = 1
    if status == 0:
        logger.info("All done.")
    sys.exit(status)
