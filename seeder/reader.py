"""
Source reader for CSV seed files.

Opens plain or gzip-compressed CSV files (compression is detected from the
file content, not its name) and yields raw rows lazily. A UTF-8 byte order
mark at the start of the file is stripped.
"""

import csv
import gzip
import itertools
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, Union

from .exceptions import SourceUnavailable

logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"
GZIP_MAGIC = b"\x1f\x8b"

MIME_GZIP = "application/gzip"
MIME_TEXT = "text/plain"


def strip_utf8_bom(text: Union[str, bytes]) -> Union[str, bytes]:
    """
    Strip a UTF-8 BOM from the start of a string.

    Works on decoded text (U+FEFF) as well as raw bytes (EF BB BF). Only one
    leading BOM is removed; anything else is returned untouched.

    Example:
        >>> strip_utf8_bom("\\ufefffoo")
        'foo'
        >>> strip_utf8_bom(b"\\xef\\xbb\\xbffoo")
        b'foo'
    """
    if isinstance(text, bytes):
        return text[len(UTF8_BOM):] if text.startswith(UTF8_BOM) else text
    return text[1:] if text.startswith("\ufeff") else text


def detect_mime_type(path: Union[str, Path]) -> str:
    """
    Sniff the MIME type of a seed file from its leading bytes.

    Args:
        path: File to inspect

    Returns:
        "application/gzip" for gzip streams, "text/plain" otherwise
    """
    with open(path, "rb") as f:
        magic = f.read(len(GZIP_MAGIC))
    return MIME_GZIP if magic == GZIP_MAGIC else MIME_TEXT


def open_csv(path: Union[str, Path], encoding: str = "utf-8") -> IO[str]:
    """
    Open a CSV file for reading, decompressing gzip content transparently.

    Args:
        path: Path to CSV file
        encoding: Text encoding of the (decompressed) content

    Returns:
        Text handle positioned at the start of the CSV data

    Raises:
        SourceUnavailable: If the file does not exist or cannot be read.
            Nothing is left open in that case.
    """
    path = Path(path)
    if not path.is_file() or not os.access(path, os.R_OK):
        logger.error("CSV insert failed: CSV %s does not exist or is not readable.", path)
        raise SourceUnavailable(path)

    try:
        gzipped = detect_mime_type(path) == MIME_GZIP
        if gzipped:
            return gzip.open(path, "rt", encoding=encoding, newline="")
        return open(path, "r", encoding=encoding, newline="")
    except OSError as e:
        logger.error("CSV insert failed: CSV %s could not be opened: %s", path, e)
        raise SourceUnavailable(path, f"could not be opened ({e})") from e


def iter_rows(handle: IO[str], delimiter: str = ",") -> Iterator[list[str]]:
    """
    Yield raw rows from an open CSV handle.

    A leading BOM is removed from the text before the CSV parser sees it, so
    a quoted first field is still parsed as quoted.

    Args:
        handle: Text handle from open_csv()
        delimiter: Single-character field delimiter

    Yields:
        One list of string fields per CSV record
    """
    first_line = handle.readline()
    if not first_line:
        return

    lines = itertools.chain([strip_utf8_bom(first_line)], handle)
    yield from csv.reader(lines, delimiter=delimiter)


@contextmanager
def read_csv(path: Union[str, Path], delimiter: str = ",", encoding: str = "utf-8") -> Iterator[Iterator[list[str]]]:
    """
    Context manager yielding a lazy row iterator over a CSV file.

    The file is closed exactly once when the block exits, whether the rows
    were exhausted, abandoned early, or an exception was raised.

    Example:
        >>> with read_csv("seeds/users.csv") as rows:
        ...     header = next(rows)

    Raises:
        SourceUnavailable: If the file cannot be opened
    """
    handle = open_csv(path, encoding)
    try:
        yield iter_rows(handle, delimiter)
    finally:
        handle.close()
