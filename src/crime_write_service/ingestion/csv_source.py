"""
csv_source.py
This code opens the raw crime CSV, either a local file or a URL,
and hands it to the importer one line at a time.
"""
import io
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import requests

from crime_write_service import config

logger = logging.getLogger(__name__)


class CsvSourceError(Exception):
    """The CSV source could not be opened or read."""


def _strip_line_endings(lines) -> Iterator[str]:
    try:
        for line in lines:
            yield line.rstrip("\r\n")
    except OSError as e:
        raise CsvSourceError(str(e)) from e


def fetch_csv_text(url):
    """
    Download a CSV file and return its text.
    Bytes that are not valid UTF-8 become U+FFFD instead of failing the import.
    Raises CsvSourceError if the download fails.
    """
    try:
        response = requests.get(url, timeout=config.REMOTE_TIMEOUT)
        response.raise_for_status()
        logger.info(f"Downloaded CSV from {url} ({len(response.content)} bytes)")
        return response.content.decode("utf-8", errors="replace")

    except requests.exceptions.HTTPError as httpError:
        code = httpError.response.status_code if httpError.response is not None else "?"
        if code == 404:
            error = f"Error 404: Unable to get CSV from {url} because page not found."
        else:
            error = f"HTTP Error {code}: Unable to get CSV from {url}."
        logger.error(error)
        raise CsvSourceError(error) from httpError

    except requests.exceptions.RequestException as requestError:
        error = f"Something went wrong with the connection to {url}. Error: {requestError}"
        logger.error(error)
        raise CsvSourceError(error) from requestError


@contextmanager
def open_csv_source(location):
    """
    Yield an iterator of lines (without line endings) from a path or http(s) URL.

    Usage:
        with open_csv_source("crimeyorkshire.csv") as lines:
            header = next(lines, None)
    """
    location = str(location)

    if location.startswith(("http://", "https://")):
        text = fetch_csv_text(location)
        yield _strip_line_endings(io.StringIO(text))
        return

    try:
        handle = open(Path(location), "r", encoding="utf-8", errors="replace", newline="")
    except OSError as e:
        logger.error(f"Cannot open CSV file {location}: {e}")
        raise CsvSourceError(str(e)) from e

    with handle:
        yield _strip_line_endings(handle)
