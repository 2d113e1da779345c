"""
Child process used by the end-to-end bridge tests.

Answers every request with ``id`` set to the request id and ``echo``
holding the request payload.  A request with id ``crash`` makes it exit
without answering; ``quit`` ends it cleanly.
"""

import sys

from pipebridge.codec import read_request, write_response
from pipebridge.errors import PipeError
from pipebridge.values import Record


def main() -> int:
    stdin = sys.stdin.buffer
    stdout = sys.stdout.buffer
    while True:
        try:
            call_id, payload = read_request(stdin)
        except PipeError:
            return 1
        if call_id == "quit":
            return 0
        if call_id == "crash":
            return 3
        print(f"handling {call_id}", file=sys.stderr, flush=True)
        write_response(stdout, Record({"id": call_id, "echo": payload}))
        stdout.flush()


if __name__ == "__main__":
    sys.exit(main())
