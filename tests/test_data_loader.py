import pytest

import data_loader
from data_loader import TABLES, load_input_data, read_table
from exceptions import InvalidParameterError, MalformedInputError, MissingFileError

SCENARIO_FILES = {
    "demand": "50\n50\n",
    "plant_capacity": "100\n100\n",
    "facility_min_activity": "0,0\n",
    "facility_max_activity": "200,200\n",
    "facility_fixed_cost": "10,20\n",
    "facility_marginal_cost": "1,1\n",
    "product_transport_cost": "1\n",
    "plant_facility_distance": "1,1\n1,1\n",
    "facility_customer_distance": "1,1\n1,1\n",
}


@pytest.fixture
def write_tables(tmp_path):
    def _write(**overrides):
        contents = dict(SCENARIO_FILES, **overrides)
        paths = []
        for name in TABLES:
            path = tmp_path / f"{name}.csv"
            path.write_text(contents[name])
            paths.append(str(path))
        return paths
    return _write


def test_load_scenario(write_tables):
    data = load_input_data(write_tables(), p=1)
    assert (data.K, data.I, data.J, data.R) == (1, 2, 2, 2)
    assert data.fj == (10.0, 20.0)
    assert data.qj_max == (200, 200)
    assert data.ljr == ((1.0, 1.0), (1.0, 1.0))


def test_multi_product_tables_and_whitespace(write_tables):
    paths = write_tables(
        demand="5, 7\n3, 0\n",
        plant_capacity="10,10\n\n10,10\n",
        product_transport_cost="1.5, 2\n",
    )
    data = load_input_data(paths, p=2)
    assert data.drk == ((5, 7), (3, 0))
    assert data.I == 2
    assert data.ck == (1.5, 2.0)


def test_missing_file_aborts_before_parsing(write_tables, monkeypatch):
    paths = write_tables()
    paths[4] = paths[4] + ".missing"

    def fail(*args, **kwargs):
        raise AssertionError("read_table must not run")

    monkeypatch.setattr(data_loader, "read_table", fail)
    with pytest.raises(MissingFileError, match="does not exist"):
        load_input_data(paths, p=1)


def test_wrong_number_of_paths(write_tables):
    with pytest.raises(MalformedInputError, match="Expected 9"):
        load_input_data(write_tables()[:8], p=1)


def test_non_numeric_token(write_tables):
    with pytest.raises(MalformedInputError, match="non-numeric"):
        load_input_data(write_tables(facility_fixed_cost="10,abc\n"), p=1)


@pytest.mark.parametrize("content", ["1,1\n1\n", "1,1\n1,1,1\n"])
def test_inconsistent_row_length(write_tables, content):
    with pytest.raises(MalformedInputError, match="inconsistent row length"):
        load_input_data(write_tables(plant_facility_distance=content), p=1)


@pytest.mark.parametrize("token", ["inf", "-inf"])
def test_non_finite_token(write_tables, token):
    with pytest.raises(MalformedInputError, match="non-finite"):
        load_input_data(write_tables(facility_fixed_cost=f"{token},20\n"), p=1)


def test_undecodable_file(write_tables, tmp_path):
    paths = write_tables()
    (tmp_path / "plant_facility_distance.csv").write_bytes(b"1,\xff\xfe\n1,1\n")
    with pytest.raises(MalformedInputError, match="not valid text"):
        load_input_data(paths, p=1)


def test_trailing_separators_ignored(write_tables):
    paths = write_tables(plant_facility_distance="1,2,\n3,4,\n", facility_fixed_cost="10,20,,\n")
    data = load_input_data(paths, p=1)
    assert data.lij == ((1.0, 2.0), (3.0, 4.0))
    assert data.fj == (10.0, 20.0)


def test_interior_empty_value_rejected(write_tables):
    with pytest.raises(MalformedInputError, match="empty value"):
        load_input_data(write_tables(plant_facility_distance="1,,\n1,1,\n"), p=1)


def test_empty_file(write_tables):
    with pytest.raises(MalformedInputError, match="empty"):
        load_input_data(write_tables(demand=""), p=1)


def test_vector_table_must_be_single_row(write_tables):
    with pytest.raises(MalformedInputError, match="single row"):
        load_input_data(write_tables(facility_fixed_cost="10,20\n10,20\n"), p=1)


def test_size_mismatch_between_tables(write_tables):
    with pytest.raises(MalformedInputError, match="qj_max"):
        load_input_data(write_tables(facility_max_activity="200,200,200\n"), p=1)


def test_invalid_parameters_from_files(write_tables):
    with pytest.raises(InvalidParameterError):
        load_input_data(write_tables(facility_min_activity="9999,0\n"), p=1)
    with pytest.raises(InvalidParameterError):
        load_input_data(write_tables(), p=3)


def test_read_table_shape(tmp_path):
    path = tmp_path / "t.csv"
    path.write_text("1,2,3\n4,5,6\n")
    table = read_table(str(path), "t")
    assert table.shape == (2, 3)
    assert table.values.tolist() == [[1, 2, 3], [4, 5, 6]]
