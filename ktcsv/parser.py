"""
ktcsv parser - structural CSV splitting with a character state machine
"""

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .log import logger


class CsvError(Exception):
    """Base exception for ktcsv errors."""
    pass


class CsvValidationError(CsvError):
    """Raised when configuration or input validation fails."""
    pass


class CsvParseError(CsvError):
    """Raised when the input is structurally malformed."""

    def __init__(self, message: str, line: Optional[int] = None):
        super().__init__(message)
        self.line = line


class CsvEncodingError(CsvParseError):
    """Raised when binary input cannot be decoded."""
    pass


# Maximum file size to process (default 10GB)
MAX_FILE_SIZE = 10 * 1024 * 1024 * 1024

# Text is fed to the scanner in slices of this many characters
DEFAULT_CHUNK_SIZE = 64 * 1024

LINE_TERMINATORS = ('\r', '\n')

# Scanner states
FIELD_START = 0
IN_UNQUOTED_FIELD = 1
IN_QUOTED_FIELD = 2
QUOTE_IN_QUOTED_FIELD = 3

PathLike = Union[str, 'os.PathLike[str]']


def _check_single_char(name: str, value: str) -> None:
    if not value:
        raise CsvValidationError(f"{name} cannot be empty")
    if len(value) > 1:
        raise CsvValidationError(
            f"{name} must be a single character, got '{value}' "
            f"(length {len(value)}). Multi-character values are not supported."
        )
    if value in LINE_TERMINATORS:
        raise CsvValidationError(
            f"{name} cannot be a line terminator ({value!r})"
        )


@dataclass(frozen=True)
class CsvConfig:
    """Validated parsing options. ``quote=None`` disables quoting."""

    delimiter: str = ','
    quote: Optional[str] = '"'
    ignore_leading_whitespace: bool = False
    skip_empty_lines: bool = False
    raise_on_error: bool = True

    def __post_init__(self):
        _check_single_char("Delimiter", self.delimiter)
        if self.quote is not None:
            _check_single_char("Quote character", self.quote)
            if self.delimiter == self.quote:
                raise CsvValidationError(
                    f"Delimiter and quote character cannot be the same ('{self.delimiter}')"
                )


class ParseResult(list):
    """
    Records in input order.

    Compares equal to a plain list of lists. ``errors`` holds the
    ``(line_number, message)`` pairs recovered from when the parser runs
    with ``raise_on_error=False``.
    """

    def __init__(self, records=(), errors: Optional[List[Tuple[int, str]]] = None):
        super().__init__(records)
        self.errors: List[Tuple[int, str]] = list(errors or [])


class Scanner:
    """
    Incremental CSV state machine.

    Text is pushed in with ``feed()``, which returns the records completed
    by that text; ``end()`` flushes whatever is pending. State survives
    between ``feed()`` calls, so a quoted field or a ``\\r\\n`` pair may be
    split across chunks. A scanner is single use.
    """

    def __init__(self, config: CsvConfig):
        self.config = config
        self.errors: List[Tuple[int, str]] = []
        self._state = FIELD_START
        self._field: List[str] = []
        self._record: List[str] = []
        self._skip_lf = False
        self._prev_cr = False
        self._line = 1
        self._quote_line = 1
        self._finished = False

    @property
    def line(self) -> int:
        """Current 1-based physical line number."""
        return self._line

    def feed(self, text: str) -> List[List[str]]:
        if self._finished:
            raise CsvError("Scanner already finished")

        delimiter = self.config.delimiter
        quote = self.config.quote
        skip_whitespace = self.config.ignore_leading_whitespace
        skip_empty = self.config.skip_empty_lines

        state = self._state
        field = self._field
        record = self._record
        skip_lf = self._skip_lf
        prev_cr = self._prev_cr
        line = self._line
        quote_line = self._quote_line
        records: List[List[str]] = []

        for ch in text:
            if skip_lf:
                # \n of a \r\n pair that already ended a record
                skip_lf = False
                if ch == '\n':
                    prev_cr = False
                    continue

            eol = ch == '\n' or ch == '\r'
            if eol and not (ch == '\n' and prev_cr):
                line += 1
            prev_cr = ch == '\r'

            if state == IN_QUOTED_FIELD:
                if ch == quote:
                    state = QUOTE_IN_QUOTED_FIELD
                else:
                    field.append(ch)

            elif state == IN_UNQUOTED_FIELD:
                if ch == delimiter:
                    record.append(''.join(field))
                    field = []
                    state = FIELD_START
                elif eol:
                    record.append(''.join(field))
                    field = []
                    records.append(record)
                    record = []
                    skip_lf = ch == '\r'
                    state = FIELD_START
                else:
                    field.append(ch)

            elif state == FIELD_START:
                if ch == quote:
                    quote_line = line
                    state = IN_QUOTED_FIELD
                elif ch == delimiter:
                    record.append('')
                elif eol:
                    if record:
                        # trailing delimiter
                        record.append('')
                        records.append(record)
                    elif not skip_empty:
                        records.append(record)
                    record = []
                    skip_lf = ch == '\r'
                elif skip_whitespace and ch.isspace():
                    pass
                else:
                    field.append(ch)
                    state = IN_UNQUOTED_FIELD

            else:  # QUOTE_IN_QUOTED_FIELD
                if ch == quote:
                    field.append(ch)
                    state = IN_QUOTED_FIELD
                elif ch == delimiter:
                    record.append(''.join(field))
                    field = []
                    state = FIELD_START
                elif eol:
                    record.append(''.join(field))
                    field = []
                    records.append(record)
                    record = []
                    skip_lf = ch == '\r'
                    state = FIELD_START
                else:
                    # Only partly quoted, e.g. "a"b: keep the quotes as text
                    field.insert(0, quote)
                    field.append(quote)
                    field.append(ch)
                    state = IN_UNQUOTED_FIELD

        self._state = state
        self._field = field
        self._record = record
        self._skip_lf = skip_lf
        self._prev_cr = prev_cr
        self._line = line
        self._quote_line = quote_line
        return records

    def end(self) -> List[List[str]]:
        """Flush the final record. Raises CsvParseError on an open quote."""
        if self._finished:
            return []
        self._finished = True

        state = self._state
        record = self._record
        pending = ''.join(self._field)

        if state == IN_QUOTED_FIELD:
            message = f"Unterminated quoted field starting at line {self._quote_line}"
            if self.config.raise_on_error:
                raise CsvParseError(message, line=self._quote_line)
            logger.warning("{}; keeping {} buffered characters", message, len(pending))
            self.errors.append((self._quote_line, message))
            record.append(pending)
        elif state in (IN_UNQUOTED_FIELD, QUOTE_IN_QUOTED_FIELD):
            record.append(pending)
        elif record:
            # input ended right after a delimiter
            record.append('')

        self._record = []
        self._field = []
        return [record] if record else []


def validate_file_path(path: PathLike, max_file_size: int = MAX_FILE_SIZE) -> Path:
    """
    Validate a file path before reading it.

    Checks for:
    - Missing files
    - Symlinks (follows to final target, checks it's a regular file)
    - Device files, FIFOs and sockets
    - File size limits

    Returns:
        The resolved path.
    """
    file_path = Path(path)

    if not file_path.exists():
        raise CsvValidationError(f"File not found: {path}")

    real_path = file_path.resolve()

    try:
        file_stat = real_path.stat()
    except OSError as e:
        raise CsvValidationError(f"Cannot access file {path}: {e}") from e

    if stat.S_ISBLK(file_stat.st_mode) or stat.S_ISCHR(file_stat.st_mode):
        raise CsvValidationError(f"Cannot parse device file: {path}")
    if stat.S_ISFIFO(file_stat.st_mode):
        raise CsvValidationError(f"Cannot parse FIFO/pipe: {path}")
    if stat.S_ISSOCK(file_stat.st_mode):
        raise CsvValidationError(f"Cannot parse socket: {path}")
    if not stat.S_ISREG(file_stat.st_mode):
        raise CsvValidationError(f"Path is not a regular file: {path}")

    if file_stat.st_size > max_file_size:
        raise CsvValidationError(
            f"File too large: {file_stat.st_size} bytes "
            f"(max {max_file_size} bytes). "
            f"Increase max_file_size if this is intentional."
        )

    return real_path


class CsvParser:
    """
    Structural CSV parser.

    The parser only holds configuration; every parse call builds a fresh
    Scanner, so one instance can be shared freely between threads.
    """

    def __init__(
        self,
        delimiter: str = ',',
        quote: Optional[str] = '"',
        ignore_leading_whitespace: bool = False,
        skip_empty_lines: bool = False,
        max_file_size: int = MAX_FILE_SIZE,
        raise_on_error: bool = True,
    ):
        self._config = CsvConfig(
            delimiter=delimiter,
            quote=quote,
            ignore_leading_whitespace=ignore_leading_whitespace,
            skip_empty_lines=skip_empty_lines,
            raise_on_error=raise_on_error,
        )
        self._max_file_size = max_file_size

    @property
    def config(self) -> CsvConfig:
        return self._config

    def scanner(self) -> Scanner:
        """Return a new Scanner bound to this parser's configuration."""
        return Scanner(self._config)

    def _scan(self, content: str, scanner: Scanner) -> Iterator[List[str]]:
        for start in range(0, len(content), DEFAULT_CHUNK_SIZE):
            yield from scanner.feed(content[start:start + DEFAULT_CHUNK_SIZE])
        yield from scanner.end()

    def iter_string(self, content: str) -> Iterator[List[str]]:
        """Yield the records of ``content`` one at a time."""
        return self._scan(content, self.scanner())

    def parse_string(self, content: str) -> ParseResult:
        """
        Parse a CSV string and return all rows.

        Args:
            content: CSV content as a string

        Returns:
            ParseResult of rows, where each row is a list of field values.

        Raises:
            CsvParseError: On an unterminated quoted field (when raise_on_error=True)
        """
        scanner = self.scanner()
        result = ParseResult(self._scan(content, scanner))
        result.errors = list(scanner.errors)
        logger.debug("Parsed {} records from {} characters", len(result), len(content))
        return result

    def parse_line(self, line: str) -> List[str]:
        """Return the fields of the first record in ``line``."""
        for record in self.iter_string(line):
            return record
        return []

    def parse_dicts(self, content: str) -> List[Dict[str, str]]:
        """
        Parse ``content`` using its first record as the header.

        Values beyond the header width are keyed ``column_<index>``;
        short records simply lack the trailing keys.
        """
        records = self.iter_string(content)
        header = next(records, None)
        if header is None:
            return []

        rows = []
        for record in records:
            rows.append({
                header[i] if i < len(header) else f"column_{i}": value
                for i, value in enumerate(record)
            })
        return rows

    def open(self, path: PathLike, encoding: str = 'utf-8', validate_path: bool = True):
        """Open ``path`` for streaming. Returns a CsvReader."""
        from .reader import CsvReader

        if validate_path:
            path = validate_file_path(path, self._max_file_size)
        return CsvReader(path, self._config, encoding=encoding)

    def parse_file(
        self,
        path: PathLike,
        encoding: str = 'utf-8',
        validate_path: bool = True,
    ) -> ParseResult:
        """
        Parse a CSV file and return all rows.

        Args:
            path: Path to the CSV file
            encoding: Text encoding of the file
            validate_path: If True (default), validates the file path first.
                          Set to False only if you've already validated the path.

        Returns:
            ParseResult of rows, where each row is a list of field values.

        Raises:
            CsvValidationError: If path validation fails
            CsvEncodingError: If the file is not valid in ``encoding``
            CsvParseError: If parsing fails (when raise_on_error=True)
        """
        with self.open(path, encoding=encoding, validate_path=validate_path) as reader:
            result = ParseResult(reader)
            result.errors = reader.errors
        logger.debug("Parsed {} records from {}", len(result), path)
        return result

    def count_rows(self, path: PathLike, encoding: str = 'utf-8') -> int:
        """Count records in a file without keeping them in memory."""
        with self.open(path, encoding=encoding) as reader:
            return sum(1 for _ in reader)


def parse_string(
    content: str,
    delimiter: str = ',',
    quote: Optional[str] = '"',
    **kwargs
) -> ParseResult:
    """Parse a CSV string and return all rows."""
    parser = CsvParser(delimiter=delimiter, quote=quote, **kwargs)
    return parser.parse_string(content)


parse = parse_string


def parse_line(
    line: str,
    delimiter: str = ',',
    quote: Optional[str] = '"',
    **kwargs
) -> List[str]:
    """Parse a single CSV line and return its fields."""
    parser = CsvParser(delimiter=delimiter, quote=quote, **kwargs)
    return parser.parse_line(line)


def parse_dicts(
    content: str,
    delimiter: str = ',',
    quote: Optional[str] = '"',
    **kwargs
) -> List[Dict[str, str]]:
    """Parse a CSV string into dictionaries keyed by the header row."""
    parser = CsvParser(delimiter=delimiter, quote=quote, **kwargs)
    return parser.parse_dicts(content)


def parse_file(
    path: PathLike,
    delimiter: str = ',',
    quote: Optional[str] = '"',
    *,
    encoding: str = 'utf-8',
    **kwargs
) -> ParseResult:
    """Parse a CSV file and return all rows."""
    parser = CsvParser(delimiter=delimiter, quote=quote, **kwargs)
    return parser.parse_file(path, encoding=encoding)


def count_rows(
    path: PathLike,
    delimiter: str = ',',
    quote: Optional[str] = '"',
    *,
    encoding: str = 'utf-8',
    **kwargs
) -> int:
    """Count the number of records in a CSV file."""
    parser = CsvParser(delimiter=delimiter, quote=quote, **kwargs)
    return parser.count_rows(path, encoding=encoding)
