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

from typing import Optional


class ReconciliationError(Exception):
    """Fatal condition while reconciling one read against its CIGAR and MD.

    ``read_id`` and ``operation_index`` are filled in by the reconciler so
    the caller can decide whether to skip the record or stop.
    """

    def __init__(self, message: str, read_id: Optional[str] = None,
                 operation_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.read_id = read_id
        self.operation_index = operation_index

    def __str__(self):
        context = []
        if self.read_id is not None:
            context.append(f"read {self.read_id}")
        if self.operation_index is not None:
            context.append(f"CIGAR operation {self.operation_index}")
        if context:
            return f"{', '.join(context)}: {self.message}"
        return self.message


class MalformedTagError(ReconciliationError):
    pass


class DesynchronizationError(ReconciliationError):
    pass


class ReferenceLookupError(ReconciliationError, LookupError):
    pass


class MatePairingError(ReconciliationError):
    pass
