"""Plain-text serialization of dense factor matrices and bias vectors.

Matrix layout: a ``rows cols`` header line followed by one line per row with
``cols`` space-separated values. Vector layout: a length line followed by one
value per line. Floats are written with 17 significant digits so that reading
back gives bit-identical values.
"""
from typing import TextIO

import numpy as np

FLOAT_FORMAT = "%.17g"


def _next_line(reader: TextIO, what: str) -> str:
    line = reader.readline()
    if not line:
        raise ValueError(f"Unexpected end of file while reading {what}")
    return line


def _read_body(reader: TextIO, num_lines: int, what: str) -> list[str]:
    # read exactly num_lines so the handle is positioned at the next block
    return [_next_line(reader, f"{what} line {n}") for n in range(num_lines)]


def write_matrix(writer: TextIO, matrix: np.ndarray) -> None:
    """Write a 2-D array as header + row-major lines."""
    if matrix.ndim != 2:
        raise ValueError(f"Expected a 2-D matrix, got shape {matrix.shape}")
    rows, cols = matrix.shape
    writer.write(f"{rows} {cols}\n")
    if cols:
        np.savetxt(writer, matrix, fmt=FLOAT_FORMAT, delimiter=" ")
    else:
        writer.write("\n" * rows)


def read_matrix(reader: TextIO) -> np.ndarray:
    header = _next_line(reader, "matrix header").split()
    if len(header) != 2:
        raise ValueError(f"Malformed matrix header: {header!r}")
    rows, cols = (int(x) for x in header)
    if rows < 0 or cols < 0:
        raise ValueError(f"Negative matrix dimensions: {rows} x {cols}")

    lines = _read_body(reader, rows, "matrix")
    if rows == 0 or cols == 0:
        return np.zeros((rows, cols), dtype=np.float64)

    matrix = np.loadtxt(lines, dtype=np.float64, ndmin=2)
    if matrix.shape != (rows, cols):
        raise ValueError(f"Matrix body has shape {matrix.shape}, expected {(rows, cols)}")
    return matrix


def write_vector(writer: TextIO, vector: np.ndarray) -> None:
    writer.write(f"{len(vector)}\n")
    if len(vector):
        np.savetxt(writer, np.asarray(vector, dtype=np.float64), fmt=FLOAT_FORMAT)


def read_vector(reader: TextIO) -> np.ndarray:
    size = int(_next_line(reader, "vector length"))
    if size < 0:
        raise ValueError(f"Negative vector length: {size}")
    if size == 0:
        return np.zeros(0, dtype=np.float64)

    vector = np.loadtxt(_read_body(reader, size, "vector"), dtype=np.float64, ndmin=1)
    if vector.shape != (size,):
        raise ValueError(f"Vector body has shape {vector.shape}, expected ({size},)")
    return vector
