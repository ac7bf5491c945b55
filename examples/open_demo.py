#!/usr/bin/env python3
"""
Use a pipeline directly, without the logging module.

The writer is buffered: if the application exits without closing it, up to
one flush interval of data is lost.
"""

import os
import tempfile
from dataclasses import replace

from logwriter import DEFAULT_OPEN_OPTION, open_writer


def main():
    option = replace(
        DEFAULT_OPEN_OPTION,
        file_or_dir=tempfile.gettempdir(),
        prefix="logwriter-example",
        suffix=".gz",
    )

    with open_writer(option) as writer:
        writer.write(b"This message is written to /tmp/logwriter-example.*.log.gz within a second.\n")
        writer.write(f"pid is {os.getpid()}.\n".encode())
        writer.write(b"Application going to shutdown.\n")


if __name__ == "__main__":
    main()
