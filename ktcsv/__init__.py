"""
ktcsv - structural CSV parser

Splits CSV text into records of string fields. Quoted fields may hold
delimiters, line breaks and doubled quotes; everything else is passed
through untouched.
"""

from .parser import (
    CsvConfig,
    CsvParser,
    ParseResult,
    Scanner,
    parse,
    parse_string,
    parse_line,
    parse_dicts,
    parse_file,
    count_rows,
    validate_file_path,
    CsvError,
    CsvValidationError,
    CsvParseError,
    CsvEncodingError,
    MAX_FILE_SIZE,
)
from .reader import CsvReader, open_iterator
from .result import CsvTable, parse_table
from .log import configure_logger, get_logger

__version__ = '0.1.0'
__all__ = [
    'CsvConfig',
    'CsvParser',
    'ParseResult',
    'Scanner',
    'CsvReader',
    'CsvTable',
    'parse',
    'parse_string',
    'parse_line',
    'parse_dicts',
    'parse_file',
    'parse_table',
    'count_rows',
    'open_iterator',
    'validate_file_path',
    'configure_logger',
    'get_logger',
    'CsvError',
    'CsvValidationError',
    'CsvParseError',
    'CsvEncodingError',
    'MAX_FILE_SIZE',
]
