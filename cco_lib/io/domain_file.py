"""
Domain point-cloud files in legacy VTK FIELD format.

Layout::

    # vtk DataFile Version 3.0
    <title>
    ASCII
    FIELD <name> 4
    dimension 1 1 int
    3
    volume 1 1 double
    0.0001
    seeds 3 1 double
    0.0 0.0 0.0287941
    points 3 <n> double
    ...

Values of an array may span any number of lines. ``volume`` is an area for
2D domains.
"""

from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from ..core.domain import DomainFunction, PointSetDomain
from ..core.errors import DomainFileError

KEYWORDS = ("dimension", "volume", "seeds", "points")


def _tokens(lines: List[str], start: int) -> Iterator[Tuple[str, int]]:
    for number, line in enumerate(lines[start:], start=start + 1):
        for token in line.split():
            yield token, number


def _parse(lines: List[str]) -> Dict[str, Tuple[np.ndarray, int]]:
    if len(lines) < 4:
        raise DomainFileError("File is too short for a VTK header", len(lines))
    if not lines[0].startswith("# vtk DataFile"):
        raise DomainFileError(f"Not a VTK file: {lines[0].strip()!r}", 1)
    encoding = lines[2].strip().upper()
    if encoding == "BINARY":
        raise DomainFileError("BINARY encoding is not supported", 3)
    if encoding != "ASCII":
        raise DomainFileError(f"Unknown encoding {lines[2].strip()!r}", 3)
    header = lines[3].split()
    if len(header) != 3 or header[0].upper() != "FIELD":
        raise DomainFileError(f"Expected 'FIELD <name> <count>', got {lines[3].strip()!r}", 4)
    try:
        count = int(header[2])
    except ValueError:
        raise DomainFileError(f"Invalid array count {header[2]!r}", 4)

    arrays = {}
    tokens = _tokens(lines, 4)
    for _ in range(count):
        try:
            name, number = next(tokens)
            components, _ = next(tokens)
            tuples, _ = next(tokens)
            kind, _ = next(tokens)
        except StopIteration:
            raise DomainFileError("Unexpected end of file in array header", len(lines))
        if name not in KEYWORDS:
            raise DomainFileError(f"Unknown keyword {name!r}", number)
        if kind not in ("int", "float", "double"):
            raise DomainFileError(f"Unknown data type {kind!r} for {name!r}", number)
        try:
            components = int(components)
            tuples = int(tuples)
        except ValueError:
            raise DomainFileError(f"Invalid array size for {name!r}", number)

        values = []
        for _ in range(components * tuples):
            try:
                token, value_line = next(tokens)
            except StopIteration:
                raise DomainFileError(
                    f"Array {name!r} expects {components * tuples} values", len(lines)
                )
            try:
                values.append(float(token))
            except ValueError:
                raise DomainFileError(f"Invalid number {token!r} in {name!r}", value_line)
        arrays[name] = (np.array(values).reshape(tuples, components), number)

    missing = [k for k in KEYWORDS if k not in arrays]
    if missing:
        raise DomainFileError(f"Missing arrays: {', '.join(missing)}", len(lines))
    return arrays


def read_domain_file(
    path: Union[str, Path],
    function: Optional[DomainFunction] = None,
    total_number_of_points: Optional[int] = None,
) -> PointSetDomain:
    """
    Load a domain point cloud.

    Parameters
    ----------
    path : str or Path
        Domain file
    function : DomainFunction, optional
        Segment membership test of the domain
    total_number_of_points : int, optional
        Use only the first points of the file

    Raises
    ------
    DomainFileError
        On any malformed content, with the offending line number.
    """
    path = Path(path)
    with open(path, "r") as f:
        lines = f.read().splitlines()
    arrays = _parse(lines)

    values, number = arrays["dimension"]
    if values.size != 1 or values[0, 0] not in (2, 3):
        raise DomainFileError(f"Dimension must be 2 or 3, got {values.ravel().tolist()}", number)
    dimension = int(values[0, 0])

    values, number = arrays["volume"]
    if values.size != 1:
        raise DomainFileError("Volume must be a single value", number)
    volume = float(values[0, 0])
    if volume < 0.0:
        raise DomainFileError(f"Volume must be non-negative, got {volume}", number)

    for name in ("seeds", "points"):
        values, number = arrays[name]
        if values.shape[1] != dimension:
            raise DomainFileError(
                f"{name} have {values.shape[1]} coordinates, expected {dimension}", number
            )

    return PointSetDomain(
        arrays["points"][0],
        arrays["seeds"][0],
        volume,
        function=function,
        total_number_of_points=total_number_of_points,
    )


def write_domain_file(
    path: Union[str, Path],
    domain: PointSetDomain,
    title: str = "Domain points",
) -> None:
    """
    Save a point-set domain in the format read by ``read_domain_file``.

    Coordinates are written with full double precision.
    """
    path = Path(path)
    dimension = domain.dimension
    lines = [
        "# vtk DataFile Version 3.0",
        title,
        "ASCII",
        "FIELD domain 4",
        "dimension 1 1 int",
        str(dimension),
        "",
        "volume 1 1 double",
        repr(float(domain.volume)),
        "",
        f"seeds {dimension} {domain.number_of_seeds} double",
    ]
    lines.extend(" ".join(repr(float(c)) for c in seed) for seed in domain.seeds)
    lines.append("")
    lines.append(f"points {dimension} {domain.total_number_of_points} double")
    lines.extend(" ".join(repr(float(c)) for c in point) for point in domain.points)

    with open(path, "w") as f:
        f.write("\n".join(lines) + "\n")
