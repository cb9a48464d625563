"""
Compact columnar view of parsed CSV data backed by numpy arrays
"""

from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .parser import CsvParser


class CsvTable:
    """
    Parsed CSV records packed into one UTF-8 buffer.

    Every field is stored once in a ``uint8`` array, located by ``int64``
    offset and length arrays, with ``row_offsets`` marking where each
    record's fields begin. Fields are decoded on demand, so holding a large
    table costs a few arrays instead of millions of Python strings.
    """

    __slots__ = ('_data', '_field_offsets', '_field_lengths', '_row_offsets', '_row_count', 'errors')

    def __init__(self, data: np.ndarray, field_offsets: np.ndarray,
                 field_lengths: np.ndarray, row_offsets: np.ndarray,
                 errors: Optional[List[Tuple[int, str]]] = None):
        self._data = data
        self._field_offsets = field_offsets
        self._field_lengths = field_lengths
        self._row_offsets = row_offsets
        self._row_count = len(row_offsets) - 1
        self.errors = list(errors or [])

    @classmethod
    def from_rows(cls, rows: Sequence[List[str]],
                  errors: Optional[List[Tuple[int, str]]] = None) -> 'CsvTable':
        """Pack a list of records into a table."""
        encoded = [field.encode('utf-8') for row in rows for field in row]

        field_lengths = np.fromiter((len(b) for b in encoded), dtype=np.int64, count=len(encoded))
        field_offsets = np.zeros(len(encoded), dtype=np.int64)
        if len(encoded) > 1:
            field_offsets[1:] = np.cumsum(field_lengths[:-1])

        row_widths = np.fromiter((len(row) for row in rows), dtype=np.int64, count=len(rows))
        row_offsets = np.zeros(len(rows) + 1, dtype=np.int64)
        row_offsets[1:] = np.cumsum(row_widths)

        data = np.frombuffer(b''.join(encoded), dtype=np.uint8)
        return cls(data, field_offsets, field_lengths, row_offsets, errors)

    def _decode(self, field_idx: int) -> str:
        offset = self._field_offsets[field_idx]
        length = self._field_lengths[field_idx]
        return self._data[offset:offset + length].tobytes().decode('utf-8')

    def _row_bounds(self, idx: int) -> Tuple[int, int]:
        if idx < 0:
            idx = self._row_count + idx
        if idx < 0 or idx >= self._row_count:
            raise IndexError(f"Row index {idx} out of range")
        return int(self._row_offsets[idx]), int(self._row_offsets[idx + 1])

    def __len__(self) -> int:
        """Return the number of rows."""
        return self._row_count

    def __getitem__(self, idx: int) -> List[str]:
        """Get a row by index, decoding fields on demand."""
        start, end = self._row_bounds(idx)
        return [self._decode(i) for i in range(start, end)]

    def __iter__(self) -> Iterator[List[str]]:
        for i in range(self._row_count):
            yield self[i]

    def __repr__(self) -> str:
        return f"CsvTable(rows={self._row_count}, fields={self.field_count})"

    @property
    def row_count(self) -> int:
        return self._row_count

    @property
    def field_count(self) -> int:
        """Total number of fields across all rows."""
        return len(self._field_offsets)

    @property
    def nbytes(self) -> int:
        """Memory held by the backing arrays."""
        return (self._data.nbytes + self._field_offsets.nbytes
                + self._field_lengths.nbytes + self._row_offsets.nbytes)

    def row_widths(self) -> np.ndarray:
        """Number of fields in each row."""
        return np.diff(self._row_offsets)

    def to_list(self) -> List[List[str]]:
        """Convert to a list of lists (materializes all data)."""
        return [self[i] for i in range(self._row_count)]

    def get_field(self, row: int, col: int) -> str:
        """Get a single field value by row and column index."""
        start, end = self._row_bounds(row)
        field_idx = start + col
        if col < 0 or field_idx >= end:
            raise IndexError(f"Column index {col} out of range")
        return self._decode(field_idx)

    def get_column(self, col: int) -> List[str]:
        """Get all values in a column; rows too short for it give ''."""
        if col < 0:
            raise IndexError(f"Column index {col} out of range")
        result = []
        for i in range(self._row_count):
            start = self._row_offsets[i]
            end = self._row_offsets[i + 1]
            if col < end - start:
                result.append(self._decode(start + col))
            else:
                result.append('')
        return result


def parse_table(
    content: str,
    delimiter: str = ',',
    quote: Optional[str] = '"',
    **kwargs
) -> CsvTable:
    """
    Parse a CSV string into a CsvTable.

    Accepts the same options as ``parse_string``.

    Example:
        >>> table = parse_table("a,b\\n1,2\\n")
        >>> len(table)
        2
        >>> table.get_field(1, 0)
        '1'
    """
    rows = CsvParser(delimiter=delimiter, quote=quote, **kwargs).parse_string(content)
    return CsvTable.from_rows(rows, rows.errors)
