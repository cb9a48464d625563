"""
Streaming CSV reader over files and file objects
"""

import codecs
import os
from typing import IO, Any, Iterator, List, Optional, Tuple, Union

from .log import logger
from .parser import (
    DEFAULT_CHUNK_SIZE,
    MAX_FILE_SIZE,
    CsvConfig,
    CsvEncodingError,
    CsvError,
    CsvValidationError,
    Scanner,
    validate_file_path,
)


class CsvReader:
    """
    Row-by-row reader for a CSV file or file object.

    Reads ``chunk_size`` units at a time and pushes them through a Scanner,
    so memory use is bounded by the longest record rather than the file.
    Binary sources are decoded incrementally; text sources are used as is.

    The reader only closes handles it opened itself.

    Example:
        >>> with CsvReader('data.csv') as reader:
        ...     for row in reader:
        ...         if row[0] == 'stop':
        ...             break  # nothing past this chunk is read
    """

    def __init__(
        self,
        source: Union[str, 'os.PathLike[str]', IO[Any]],
        config: Optional[CsvConfig] = None,
        *,
        encoding: str = 'utf-8',
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if chunk_size <= 0:
            raise CsvValidationError(f"chunk_size must be positive, got {chunk_size}")
        try:
            decoder_factory = codecs.getincrementaldecoder(encoding)
        except LookupError as e:
            raise CsvValidationError(f"Unknown encoding: {encoding}") from e

        self._config = config or CsvConfig()
        self._chunk_size = chunk_size
        self._decoder = decoder_factory(errors='strict')
        self._scanner = Scanner(self._config)
        self._rows: Optional[Iterator[List[str]]] = None
        self._closed = False
        self.lines_processed = 0

        if isinstance(source, (str, os.PathLike)):
            try:
                self._handle = open(source, 'rb')
            except OSError as e:
                raise CsvValidationError(f"Cannot open file {source}: {e}") from e
            self._owns_handle = True
            self.name = os.fspath(source)
            logger.debug("Opened {} for reading", self.name)
        else:
            self._handle = source
            self._owns_handle = False
            self.name = getattr(source, 'name', repr(source))

    @property
    def config(self) -> CsvConfig:
        return self._config

    @property
    def errors(self) -> List[Tuple[int, str]]:
        """Return list of (line_number, error_message) tuples recovered so far."""
        return self._scanner.errors.copy()

    @property
    def closed(self) -> bool:
        return self._closed

    def _decode(self, chunk: Any, final: bool = False) -> str:
        if isinstance(chunk, str):
            return chunk
        try:
            return self._decoder.decode(chunk, final)
        except UnicodeDecodeError as e:
            raise CsvEncodingError(
                f"Cannot decode {self.name} as {e.encoding}: {e.reason}",
                line=self._scanner.line,
            ) from e

    def _read_rows(self) -> Iterator[List[str]]:
        scanner = self._scanner
        while True:
            chunk = self._handle.read(self._chunk_size)
            if not chunk:
                break
            yield from scanner.feed(self._decode(chunk))
        yield from scanner.feed(self._decode(b'', final=True))
        yield from scanner.end()

    def __iter__(self) -> 'CsvReader':
        return self

    def __next__(self) -> List[str]:
        if self._closed:
            raise CsvError(f"Reader for {self.name} is closed")
        if self._rows is None:
            self._rows = self._read_rows()
        row = next(self._rows)
        self.lines_processed += 1
        return row

    def read_all(self) -> List[List[str]]:
        """Read every remaining record."""
        return list(self)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._owns_handle:
            self._handle.close()
            logger.debug("Closed {} after {} records", self.name, self.lines_processed)

    def __enter__(self) -> 'CsvReader':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def open_iterator(
    path: Union[str, 'os.PathLike[str]'],
    delimiter: str = ',',
    quote: Optional[str] = '"',
    *,
    encoding: str = 'utf-8',
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    ignore_leading_whitespace: bool = False,
    skip_empty_lines: bool = False,
    raise_on_error: bool = True,
    max_file_size: int = MAX_FILE_SIZE,
) -> CsvReader:
    """
    Open a CSV file for row-by-row iteration.

    Args:
        path: Path to the CSV file
        delimiter: Field delimiter character (default: ',')
        quote: Quote character (default: '"', None disables quoting)
        encoding: Text encoding of the file
        chunk_size: Bytes read per chunk
        ignore_leading_whitespace: Skip whitespace at the start of each field
        skip_empty_lines: Drop blank lines instead of yielding []
        raise_on_error: Raise on an unterminated quoted field instead of
                        recording it in ``reader.errors``
        max_file_size: Refuse files larger than this many bytes

    Returns:
        CsvReader that can be used with for-loops or as a context manager.

    Raises:
        CsvValidationError: If the path or options are invalid

    Example:
        >>> with open_iterator('data.csv') as reader:
        ...     for row in reader:
        ...         print(row)
        ['header1', 'header2']
        ['value1', 'value2']
    """
    config = CsvConfig(
        delimiter=delimiter,
        quote=quote,
        ignore_leading_whitespace=ignore_leading_whitespace,
        skip_empty_lines=skip_empty_lines,
        raise_on_error=raise_on_error,
    )
    real_path = validate_file_path(path, max_file_size)
    return CsvReader(real_path, config, encoding=encoding, chunk_size=chunk_size)
