#!/usr/bin/env python3
"""
Route the standard logging module into a compressed log file.

Run it, then read the result with:
    zstdcat /tmp/logwriter-example.*.log.zst
"""

import logging
import tempfile
from dataclasses import replace

from logwriter import DEFAULT_OPEN_OPTION, setup


def main():
    logging.warning("This message is written to the default destination.")

    option = replace(
        DEFAULT_OPEN_OPTION,
        file_or_dir=tempfile.gettempdir(),
        prefix="logwriter-example",
    )
    tear_down = setup(option, level=logging.INFO)
    try:
        logging.info("This message is written to %s/logwriter-example.*.log.zst", option.file_or_dir)
        for i in range(10):
            logging.info("Message #%d", i)
    finally:
        tear_down()

    logging.warning("This message is written to the default destination again.")


if __name__ == "__main__":
    main()
