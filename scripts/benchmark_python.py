#!/usr/bin/env python3

"""
Benchmark comparison: ktcsv vs stdlib csv vs pandas vs polars

# Install dependencies
pip install -e . && pip install pandas polars

# Run benchmark with 100k rows × 10 columns
python scripts/benchmark_python.py --rows 100000 --cols 10

# Mix in quoted fields with embedded delimiters and quotes
python scripts/benchmark_python.py --rows 100000 --quoted

# Use an existing CSV file
python scripts/benchmark_python.py --file /path/to/large.csv
"""

import argparse
import os
import tempfile
import time

import ktcsv
from ktcsv import configure_logger, get_logger

log = get_logger("benchmark")


def generate_csv(filepath: str, rows: int, cols: int, quoted: bool = False) -> int:
    """Generate a test CSV file and return its size in bytes."""
    log.info("Generating CSV: {:,} rows × {} columns", rows, cols)
    start = time.perf_counter()

    with open(filepath, 'w', newline='') as f:
        f.write(','.join(f'col{i}' for i in range(cols)) + '\r\n')
        for row_num in range(rows):
            if quoted:
                fields = [f'"value {row_num}, ""{i}"""' for i in range(cols)]
            else:
                fields = [f'value_{row_num}_{i}' for i in range(cols)]
            f.write(','.join(fields) + '\r\n')

    elapsed = time.perf_counter() - start
    size = os.path.getsize(filepath)
    log.info("Done in {:.2f}s, file size: {:.1f} MB", elapsed, size / (1024**2))
    return size


def benchmark_ktcsv(filepath: str) -> tuple:
    """Benchmark ktcsv: streaming count, full parse and table packing."""
    log.info("Benchmarking ktcsv...")

    start = time.perf_counter()
    row_count = ktcsv.count_rows(filepath)
    count_time = time.perf_counter() - start

    start = time.perf_counter()
    rows = ktcsv.parse_file(filepath)
    parse_time = time.perf_counter() - start

    start = time.perf_counter()
    table = ktcsv.CsvTable.from_rows(rows)
    pack_time = time.perf_counter() - start

    return {
        'count_time': count_time,
        'count_rows': row_count,
        'parse_time': parse_time,
        'parse_rows': len(rows),
        'parse_cols': len(rows[0]) if rows else 0,
        'pack_time': pack_time,
        'table_bytes': table.nbytes,
    }, None


def benchmark_stdlib(filepath: str) -> tuple:
    """Benchmark Python stdlib csv reader."""
    import csv

    log.info("Benchmarking stdlib csv...")

    start = time.perf_counter()
    with open(filepath, 'r', newline='') as f:
        rows = list(csv.reader(f))
    parse_time = time.perf_counter() - start

    return {
        'parse_time': parse_time,
        'parse_rows': len(rows),
        'parse_cols': len(rows[0]) if rows else 0,
    }, None


def benchmark_pandas(filepath: str) -> tuple:
    """Benchmark pandas CSV reader."""
    try:
        import pandas as pd
    except ImportError:
        return None, "pandas not installed"

    log.info("Benchmarking pandas...")

    start = time.perf_counter()
    df = pd.read_csv(filepath, dtype=str, keep_default_na=False)
    parse_time = time.perf_counter() - start

    return {
        'parse_time': parse_time,
        'parse_rows': len(df) + 1,  # header is consumed as column names
        'parse_cols': len(df.columns),
    }, None


def benchmark_polars(filepath: str) -> tuple:
    """Benchmark polars CSV reader."""
    try:
        import polars as pl
    except ImportError:
        return None, "polars not installed"

    log.info("Benchmarking polars...")

    start = time.perf_counter()
    df = pl.read_csv(filepath, infer_schema_length=0)
    parse_time = time.perf_counter() - start

    return {
        'parse_time': parse_time,
        'parse_rows': len(df) + 1,
        'parse_cols': len(df.columns),
    }, None


def format_throughput(file_size: int, parse_time: float) -> str:
    """Calculate and format throughput in MB/s."""
    if parse_time > 0:
        mb_per_sec = (file_size / (1024**2)) / parse_time
        return f"{mb_per_sec:.1f} MB/s"
    return "N/A"


def main():
    parser = argparse.ArgumentParser(description='Benchmark CSV parsers')
    parser.add_argument('--rows', type=int, default=100_000, help='Number of rows')
    parser.add_argument('--cols', type=int, default=10, help='Number of columns')
    parser.add_argument('--quoted', action='store_true', help='Quote every generated field')
    parser.add_argument('--file', type=str, help='Use existing CSV file instead of generating')
    parser.add_argument('--log-level', default='INFO', help='Log level for progress messages')
    args = parser.parse_args()

    configure_logger(level=args.log_level)

    if args.file:
        filepath = args.file
        file_size = os.path.getsize(filepath)
        log.info("Using existing file: {} ({:.1f} MB)", filepath, file_size / (1024**2))
    else:
        fd, filepath = tempfile.mkstemp(suffix='.csv')
        os.close(fd)
        file_size = generate_csv(filepath, args.rows, args.cols, args.quoted)

    results = {}
    try:
        for name, bench in (('ktcsv', benchmark_ktcsv), ('stdlib', benchmark_stdlib),
                            ('pandas', benchmark_pandas), ('polars', benchmark_polars)):
            results[name], err = bench(filepath)
            if err:
                log.warning("Skipped {}: {}", name, err)
    finally:
        if not args.file:
            os.unlink(filepath)

    print(f"\n{'='*60}")
    print(f"{'Library':<12} {'Parse Time':>12} {'Throughput':>14} {'Rows':>12}")
    print(f"{'-'*60}")

    ranked = sorted(results.items(), key=lambda x: x[1]['parse_time'] if x[1] else float('inf'))
    for name, result in ranked:
        if result:
            throughput = format_throughput(file_size, result['parse_time'])
            print(f"{name:<12} {result['parse_time']:>10.3f}s {throughput:>14} {result['parse_rows']:>12,}")

    ktcsv_result = results.get('ktcsv')
    if ktcsv_result:
        print(f"\nktcsv count_rows (streaming): {ktcsv_result['count_time']:.3f}s")
        print(f"ktcsv table packing: {ktcsv_result['pack_time']:.3f}s, "
              f"{ktcsv_result['table_bytes'] / (1024**2):.1f} MB held")


if __name__ == '__main__':
    main()
