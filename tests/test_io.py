import pytest
import json
import numpy as np

from cco_lib.core import CircleFunction, DomainFileError, PointSetDomain
from cco_lib.io import (
    load_json,
    read_domain_file,
    save_csv,
    save_json,
    save_vtk,
    write_domain_file,
)

DOMAIN_FILE = """# vtk DataFile Version 3.0
Domain points
ASCII
FIELD domain 4
dimension 1 1 int
2
volume 1 1 double
{volume}
seeds 2 1 double
0.0 0.0
points 2 2 double
0.1 0.1
0.2 {last}
"""


def _write(temp_dir, text):
    path = temp_dir / "domain.vtk"
    path.write_text(text)
    return path


def test_read_domain_file(temp_dir):
    """Test loading a valid 2D domain file."""
    path = _write(temp_dir, DOMAIN_FILE.format(volume="0.0025", last="0.2"))
    domain = read_domain_file(path)
    assert domain.dimension == 2
    assert domain.volume == pytest.approx(0.0025)
    assert domain.number_of_seeds == 1
    assert domain.total_number_of_points == 2
    np.testing.assert_allclose(domain.point(), [0.1, 0.1])


def test_read_domain_file_point_limit(temp_dir):
    """Test that only the first points are used when limited."""
    path = _write(temp_dir, DOMAIN_FILE.format(volume="0.0025", last="0.2"))
    domain = read_domain_file(path, function=CircleFunction(1.0), total_number_of_points=1)
    assert domain.total_number_of_points == 1
    assert domain.is_in(np.array([0.1, 0.1]), np.array([0.2, 0.2]))


def test_domain_file_round_trip(temp_dir):
    """Test that written domains read back with the same values."""
    domain = PointSetDomain.sample(CircleFunction(0.03), [-0.03] * 3, [0.03] * 3, 100,
                                   seeds=[[0.0, 0.0, 0.03], [0.0, 0.0, -0.03]], seed=2)
    path = temp_dir / "sphere.vtk"
    write_domain_file(path, domain)
    loaded = read_domain_file(path)
    np.testing.assert_array_equal(loaded.points, domain.points)
    np.testing.assert_array_equal(loaded.seeds, domain.seeds)
    assert loaded.volume == domain.volume


def test_negative_volume(temp_dir):
    """Test that a negative volume is reported with its line number."""
    path = _write(temp_dir, DOMAIN_FILE.format(volume="-1.0", last="0.2"))
    with pytest.raises(DomainFileError, match="line 7: Volume must be non-negative"):
        read_domain_file(path)


def test_invalid_number(temp_dir):
    """Test that a malformed coordinate is reported with its line number."""
    path = _write(temp_dir, DOMAIN_FILE.format(volume="0.0025", last="abc"))
    with pytest.raises(DomainFileError, match="line 13: Invalid number 'abc'"):
        read_domain_file(path)


def test_unknown_keyword(temp_dir):
    """Test that unknown arrays are rejected."""
    text = DOMAIN_FILE.format(volume="0.0025", last="0.2").replace("volume 1 1", "area 1 1")
    with pytest.raises(DomainFileError, match="line 7: Unknown keyword 'area'"):
        read_domain_file(_write(temp_dir, text))


def test_binary_encoding(temp_dir):
    """Test that BINARY files are not supported."""
    text = DOMAIN_FILE.format(volume="0.0025", last="0.2").replace("ASCII", "BINARY")
    with pytest.raises(DomainFileError, match="line 3: BINARY"):
        read_domain_file(_write(temp_dir, text))


def test_wrong_dimension(temp_dir):
    """Test that only 2D and 3D domains are accepted."""
    text = DOMAIN_FILE.format(volume="0.0025", last="0.2").replace("int\n2\n", "int\n4\n")
    with pytest.raises(DomainFileError, match="line 5: Dimension must be 2 or 3"):
        read_domain_file(_write(temp_dir, text))


def test_wrong_coordinate_count(temp_dir):
    """Test that seeds must match the dimension."""
    text = DOMAIN_FILE.format(volume="0.0025", last="0.2").replace(
        "seeds 2 1 double\n0.0 0.0", "seeds 3 1 double\n0.0 0.0 0.0"
    )
    with pytest.raises(DomainFileError, match="seeds have 3 coordinates, expected 2"):
        read_domain_file(_write(temp_dir, text))


def test_missing_array(temp_dir):
    """Test that all four arrays are required."""
    text = DOMAIN_FILE.format(volume="0.0025", last="0.2").replace("FIELD domain 4", "FIELD domain 3")
    text = text.split("points 2 2")[0]
    with pytest.raises(DomainFileError, match="Missing arrays: points"):
        read_domain_file(_write(temp_dir, text))


def test_not_a_vtk_file(temp_dir):
    """Test that the VTK header is required."""
    text = DOMAIN_FILE.format(volume="0.0025", last="0.2").replace("# vtk DataFile", "# csv")
    with pytest.raises(DomainFileError, match="line 1: Not a VTK file"):
        read_domain_file(_write(temp_dir, text))


def test_save_vtk(small_tree, temp_dir):
    """Test the POLYDATA layout of an exported tree."""
    path = temp_dir / "tree.vtk"
    save_vtk(small_tree, path)
    lines = path.read_text().splitlines()
    assert lines[0] == "# vtk DataFile Version 3.0"
    assert "DATASET POLYDATA" in lines
    assert "POINTS 4 double" in lines
    start = lines.index("LINES 3 9")
    assert lines[start + 1:start + 4] == ["2 0 1", "2 1 2", "2 1 3"]
    assert "CELL_DATA 3" in lines
    for name in ("radius", "flow", "length"):
        assert f"SCALARS {name} double 1" in lines
    order = lines.index("SCALARS strahler_order int 1")
    assert lines[order + 2:order + 5] == ["2", "1", "1"]
    # 2D points are padded with z = 0
    assert len(lines[lines.index("POINTS 4 double") + 1].split()) == 3


def test_save_vtk_units(small_tree, temp_dir):
    """Test that export units scale points, lengths and radii."""
    path = temp_dir / "tree.vtk"
    save_vtk(small_tree, path, length_unit="cm", radius_unit="mm")
    lines = path.read_text().splitlines()
    seed_row = lines.index("POINTS 4 double") + 1
    assert float(lines[seed_row + 2].split()[1]) == pytest.approx(1.0)
    radius_row = lines.index("SCALARS radius double 1") + 2
    assert float(lines[radius_row]) == pytest.approx(small_tree.radius(0) * 1000.0)
    length_row = lines.index("SCALARS length double 1") + 2
    assert float(lines[length_row]) == pytest.approx(small_tree.length(0) * 100.0)


def test_save_csv(small_tree, temp_dir):
    """Test the per-segment text export."""
    path = temp_dir / "tree.csv"
    save_csv(small_tree, path)
    lines = path.read_text().splitlines()
    assert lines[0] == "ID X Y Z UP LEFT RIGHT FLOW RADIUS LENGTH"
    assert len(lines) == 4
    root = lines[1].split()
    assert root[0] == "0"
    assert root[4:7] == ["-1", "1", "2"]
    assert float(root[7]) == pytest.approx(small_tree.flow(0))


def test_json_round_trip(small_tree, temp_dir):
    """Test that a saved tree loads back identically."""
    path = temp_dir / "tree.json"
    save_json(small_tree, path)
    loaded = load_json(path)
    assert loaded.to_dict() == small_tree.to_dict()
    assert json.loads(path.read_text())["schema_version"] == "1.0"


def test_json_unsupported_schema(small_tree, temp_dir):
    """Test that unknown schema versions are rejected."""
    path = temp_dir / "tree.json"
    save_json(small_tree, path)
    data = json.loads(path.read_text())
    data["schema_version"] = "9.9"
    path.write_text(json.dumps(data))
    with pytest.raises(ValueError, match="Unsupported schema version"):
        load_json(path)
