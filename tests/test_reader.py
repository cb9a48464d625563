"""Tests for file-backed parsing and the streaming reader."""

import io
import os

import pytest

import ktcsv
from ktcsv import CsvConfig, CsvParser, CsvReader, count_rows, open_iterator, parse_file


class TestParseFile:
    """Tests for parse_file function."""

    def test_parse_simple_file(self, tmp_path):
        """Test parsing a simple CSV file."""
        csv_file = tmp_path / "test.csv"
        csv_file.write_text("a,b,c\n1,2,3\n4,5,6")

        rows = parse_file(str(csv_file))
        assert rows == [
            ["a", "b", "c"],
            ["1", "2", "3"],
            ["4", "5", "6"],
        ]

    def test_parse_large_file(self, tmp_path):
        """Test parsing a file bigger than one read chunk."""
        csv_file = tmp_path / "large.csv"

        lines = ["col1,col2,col3"]
        for i in range(10000):
            lines.append(f'value{i}_1,"value{i}, 2",value{i}_3')
        csv_file.write_text("\n".join(lines))

        rows = parse_file(csv_file)
        assert len(rows) == 10001
        assert rows[0] == ["col1", "col2", "col3"]
        assert rows[1] == ["value0_1", "value0, 2", "value0_3"]
        assert rows[-1] == ["value9999_1", "value9999, 2", "value9999_3"]

    def test_custom_options(self, tmp_path):
        """Test parsing a file with custom options."""
        csv_file = tmp_path / "custom.csv"
        csv_file.write_text("a; b; c\n\n1; 2; 3")

        rows = parse_file(csv_file, delimiter=";", ignore_leading_whitespace=True,
                          skip_empty_lines=True)
        assert rows == [
            ["a", "b", "c"],
            ["1", "2", "3"],
        ]

    def test_other_encoding(self, tmp_path):
        """Test reading a non-UTF-8 file."""
        csv_file = tmp_path / "latin1.csv"
        csv_file.write_bytes("café,München\n".encode("latin-1"))

        rows = parse_file(csv_file, encoding="latin-1")
        assert rows == [["café", "München"]]

    def test_file_matches_string_parse(self, tmp_path):
        """Test the file path and the in-memory path agree."""
        data = 'a,"b\r\nc"\r\n…This is…a test.,another field\r\n"x""y",\r\n'
        csv_file = tmp_path / "same.csv"
        csv_file.write_bytes(data.encode("utf-8"))

        assert parse_file(csv_file) == ktcsv.parse_string(data)

    def test_file_not_found(self):
        """Test error handling for missing file."""
        with pytest.raises(ktcsv.CsvValidationError):
            parse_file("/nonexistent/path/to/file.csv")

    def test_directory_rejected(self, tmp_path):
        """Test a directory is not a regular file."""
        with pytest.raises(ktcsv.CsvValidationError, match="not a regular file"):
            parse_file(tmp_path)

    def test_file_too_large(self, tmp_path):
        """Test the max_file_size limit."""
        csv_file = tmp_path / "big.csv"
        csv_file.write_text("a,b,c\n" * 10)

        with pytest.raises(ktcsv.CsvValidationError, match="File too large"):
            parse_file(csv_file, max_file_size=10)

    def test_unterminated_quote_in_file(self, tmp_path):
        """Test malformed files raise like strings do."""
        csv_file = tmp_path / "bad.csv"
        csv_file.write_text('a\n"b\n')

        with pytest.raises(ktcsv.CsvParseError):
            parse_file(csv_file)

    def test_lenient_file_errors(self, tmp_path):
        """Test recovered errors are reported on the result."""
        csv_file = tmp_path / "bad.csv"
        csv_file.write_text('a\n"b\n')

        rows = parse_file(csv_file, raise_on_error=False)
        assert rows == [["a"], ["b\n"]]
        assert rows.errors[0][0] == 2


class TestCountRows:
    """Tests for count_rows function."""

    def test_count_simple(self, tmp_path):
        """Test counting rows in a simple file."""
        csv_file = tmp_path / "count.csv"
        csv_file.write_text("a,b,c\n1,2,3\n4,5,6")

        assert count_rows(str(csv_file)) == 3

    def test_count_empty_file(self, tmp_path):
        """Test counting rows in an empty file."""
        csv_file = tmp_path / "empty.csv"
        csv_file.write_text("")

        assert count_rows(csv_file) == 0

    def test_count_single_line_no_newline(self, tmp_path):
        """Test counting rows in a file with single line (no trailing newline)."""
        csv_file = tmp_path / "single.csv"
        csv_file.write_text("a,b,c")

        assert count_rows(csv_file) == 1

    def test_count_ignores_quoted_newlines(self, tmp_path):
        """Test line breaks inside quotes do not add rows."""
        csv_file = tmp_path / "quoted.csv"
        csv_file.write_text('"a\nb\nc",d\ne,f\n')

        assert count_rows(csv_file) == 2


class TestCsvReader:
    """Tests for the streaming reader."""

    def test_open_iterator(self, tmp_path):
        """Test iterating a file with open_iterator."""
        csv_file = tmp_path / "iter.csv"
        csv_file.write_text("h1,h2\nv1,v2\nv3,v4\n")

        with open_iterator(csv_file) as reader:
            rows = list(reader)
            assert reader.lines_processed == 3
        assert rows == [["h1", "h2"], ["v1", "v2"], ["v3", "v4"]]
        assert reader.closed

    def test_early_exit(self, tmp_path):
        """Test breaking out of iteration leaves later rows unread."""
        csv_file = tmp_path / "early.csv"
        csv_file.write_text("".join(f"{i},x\n" for i in range(1000)))

        with open_iterator(csv_file, chunk_size=16) as reader:
            for row in reader:
                if row[0] == "2":
                    break
            assert reader.lines_processed == 3

    def test_tiny_chunks_split_multibyte_and_crlf(self):
        """Test characters and \\r\\n pairs split across chunks."""
        data = '…a,"b""c"\r\n🎉,"x\r\ny"\r\n'
        source = io.BytesIO(data.encode("utf-8"))

        reader = CsvReader(source, chunk_size=1)
        assert reader.read_all() == ktcsv.parse_string(data)
        assert reader.read_all() == []

    def test_text_stream(self):
        """Test a text file object is read without decoding."""
        source = io.StringIO("a;b\nc;d\n")

        reader = CsvReader(source, CsvConfig(delimiter=";"), chunk_size=3)
        assert list(reader) == [["a", "b"], ["c", "d"]]

    def test_caller_handle_not_closed(self):
        """Test the reader leaves caller-owned handles open."""
        source = io.BytesIO(b"a,b\n")

        with CsvReader(source) as reader:
            reader.read_all()
        assert not source.closed

    def test_owned_handle_closed(self, tmp_path):
        """Test files opened by the reader are closed with it."""
        csv_file = tmp_path / "owned.csv"
        csv_file.write_text("a\n")

        reader = CsvReader(str(csv_file))
        reader.close()
        assert reader.closed
        with pytest.raises(ktcsv.CsvError):
            next(reader)

    def test_invalid_utf8(self):
        """Test undecodable bytes raise CsvEncodingError."""
        source = io.BytesIO(b"\xff\xfe\xfda,b,c\n")

        with pytest.raises(ktcsv.CsvEncodingError):
            CsvReader(source).read_all()

    def test_encoding_error_is_parse_error(self):
        """Test CsvEncodingError is a CsvParseError."""
        source = io.BytesIO(b"a,b\n\xc3")

        with pytest.raises(ktcsv.CsvParseError):
            CsvReader(source).read_all()

    def test_unknown_encoding(self):
        """Test an unknown codec is rejected up front."""
        with pytest.raises(ktcsv.CsvValidationError):
            CsvReader(io.BytesIO(b""), encoding="no-such-codec")

    def test_invalid_chunk_size(self):
        """Test chunk_size must be positive."""
        with pytest.raises(ktcsv.CsvValidationError):
            CsvReader(io.BytesIO(b""), chunk_size=0)

    def test_missing_file(self, tmp_path):
        """Test opening a missing path raises a validation error."""
        with pytest.raises(ktcsv.CsvValidationError):
            CsvReader(os.path.join(tmp_path, "missing.csv"))

    def test_lenient_reader_errors(self):
        """Test reader.errors collects recovered problems."""
        reader = CsvReader(io.BytesIO(b'a\n"b'), CsvConfig(raise_on_error=False))
        assert reader.read_all() == [["a"], ["b"]]
        assert reader.errors == [(2, "Unterminated quoted field starting at line 2")]

    def test_parser_open(self, tmp_path):
        """Test CsvParser.open uses the parser's configuration."""
        csv_file = tmp_path / "parser.csv"
        csv_file.write_text("a|b\n")

        parser = CsvParser(delimiter="|")
        with parser.open(csv_file) as reader:
            assert reader.config is parser.config
            assert list(reader) == [["a", "b"]]
