from __future__ import annotations

import numpy as np
import pytest

from src.plaskin.errors import MalformedRowError, MissingRequiredFileError
from src.plaskin.text_loader import (
    LEGACY_DIALECT,
    QT_DIALECT,
    TextLoader,
    detect_dialect,
    parse_data_file,
    parse_list_file,
    parse_matrix_file,
)


def _qt_blobs() -> dict:
    return {
        "qt_species_list.txt": "  1 e\n  2 O2\n  3   O(1D)\n",
        "qt_reactions_list.txt": "1 e+O2=>e+O+O(1D)\n2 O(1D)+O2=>O+O2\n",
        "qt_conditions_list.txt": "1 gas_temperature\n2 reduced_field\n",
        "qt_densities.txt": (
            "  Time_s  e  O2  O(1D)\n"
            "0.0 1.0 2.0 3.0\n"
            "1.0e-9 1.5 2.5 3.5\n"
            "2.0e-9 2.0 3.0 4.0\n"
        ),
        "qt_rates.txt": (
            "Time_s R1 R2\n"
            "0.0 10.0 1.0\n"
            "1.0e-9 20.0 2.0\n"
            "2.0e-9 30.0 3.0\n"
        ),
        "qt_conditions.txt": (
            "Time_s Tgas E/N\n"
            "0.0 300 100\n"
            "1.0e-9 301 100\n"
            "2.0e-9 302 100\n"
        ),
        "qt_matrix.txt": "1 0\n-1 -1\n1 -1\n",
    }


def test_list_file_label_follows_leading_index() -> None:
    labels = parse_list_file("  1 e\n\n  2 O2\n  7   O(1D)\nN2(A)\n")
    assert labels == ["e", "O2", "O(1D)", "N2(A)"]
    # position in the file, not the printed number, defines the index
    assert labels[2] == "O(1D)"


def test_data_file_skips_header_and_bad_rows() -> None:
    text = "time a b c\n0.0 1 2 3\n# comment\n1.0 4 x 6\n\n2.0 7 8 9\n"
    table = parse_data_file(text, 3)
    assert np.allclose(table.t, [0.0, 2.0])
    assert np.allclose(table.column(2), [3.0, 9.0])


def test_short_rows_are_zero_filled() -> None:
    table = parse_data_file("header\n0.0 1.0\n1.0 2.0 5.0 6.0\n", 2)
    assert np.allclose(table.column(0), [1.0, 2.0])
    assert np.allclose(table.column(1), [0.0, 5.0])


def test_matrix_file_parses_signed_integers() -> None:
    assert parse_matrix_file(" 1 -2 0\n\n0 1.0 -1\n") == [[1, -2, 0], [0, 1, -1]]


def test_dialect_detection_uses_sentinel() -> None:
    assert detect_dialect(["out/qt_species_list.txt"]) is QT_DIALECT
    assert detect_dialect(["species_list.txt", "out_density.txt"]) is LEGACY_DIALECT


def test_qt_dataset_loads_all_roles() -> None:
    dataset = TextLoader().load(_qt_blobs())
    assert dataset.species == ("e", "O2", "O(1D)")
    assert dataset.reactions == ("e+O2=>e+O+O(1D)", "O(1D)+O2=>O+O2")
    assert dataset.conditions == ("gas_temperature", "reduced_field")
    assert np.allclose(dataset.t, [0.0, 1e-9, 2e-9])
    assert np.allclose(dataset.density(3), [3.0, 3.5, 4.0])
    assert np.allclose(dataset.rate(2), [1.0, 2.0, 3.0])
    assert np.allclose(dataset.condition(1), [300.0, 301.0, 302.0])
    sources = dataset.sources(3)
    assert np.allclose(sources[1], [10.0, 20.0, 30.0])
    assert np.allclose(sources[2], [-1.0, -2.0, -3.0])


def test_legacy_names_are_accepted() -> None:
    blobs = {
        "species_list.txt": "1 e\n2 N2\n",
        "reactions_list.txt": "1 e+N2=>e+e+N2^+\n",
        "out_density.txt": "t e N2\n0 1 2\n1 2 3\n",
        "out_rate.txt": "t R1\n0 5\n1 6\n",
        "out_temperatures.txt": "t T\n0 300\n1 305\n",
        "conditions_list.txt": "1 Tgas_K\n",
        "source_matrix.txt": "1\n0\n",
    }
    dataset = TextLoader().load(blobs)
    assert dataset.species == ("e", "N2")
    assert np.allclose(dataset.condition(1), [300.0, 305.0])
    assert list(dataset.sources(1)) == [1]


def test_missing_required_files_are_fatal() -> None:
    blobs = _qt_blobs()
    del blobs["qt_densities.txt"]
    with pytest.raises(MissingRequiredFileError, match="qt_densities.txt"):
        TextLoader().load(blobs)
    with pytest.raises(MissingRequiredFileError, match="species_list.txt"):
        TextLoader().load({"out_density.txt": "t\n0\n"})


def test_optional_files_degrade_features() -> None:
    blobs = {
        "qt_species_list.txt": _qt_blobs()["qt_species_list.txt"],
        "qt_densities.txt": _qt_blobs()["qt_densities.txt"],
        "qt_rates.txt": _qt_blobs()["qt_rates.txt"],
    }
    dataset = TextLoader().load(blobs)
    assert dataset.reactions == ()
    assert dataset.rates == {}
    assert dataset.conditions == ()
    assert dataset.source_matrix.shape == (3, 0)
    assert dataset.sources(1) == {}


def test_missing_rates_leave_rate_series_absent() -> None:
    blobs = _qt_blobs()
    del blobs["qt_rates.txt"]
    dataset = TextLoader().load(blobs)
    assert dataset.rate(1) is None
    assert dataset.sources(3) == {}


def test_mismatched_matrix_is_fitted_and_bad_matrix_is_zeroed() -> None:
    blobs = _qt_blobs()
    blobs["qt_matrix.txt"] = "1\n-1 -1 5\n"
    dataset = TextLoader().load(blobs)
    assert dataset.source_matrix.tolist() == [[1, 0], [-1, -1], [0, 0]]

    blobs["qt_matrix.txt"] = "1 0\n-1 x\n1 -1\n"
    dataset = TextLoader().load(blobs)
    assert not dataset.source_matrix.any()


def test_rate_rows_missing_from_time_axis_are_zero() -> None:
    blobs = _qt_blobs()
    blobs["qt_rates.txt"] = "Time_s R1 R2\n0.0 10.0 1.0\n"
    dataset = TextLoader().load(blobs)
    assert np.allclose(dataset.rate(1), [10.0, 0.0, 0.0])


def test_dropped_rate_row_keeps_later_samples_in_place() -> None:
    blobs = {
        "qt_species_list.txt": "1 e\n",
        "qt_reactions_list.txt": "1 e+O2=>e+O+O\n",
        "qt_densities.txt": "t e\n0 1\n1 1\n2 1\n3 1\n",
        "qt_rates.txt": "t R1\n0 10\n1 x\n2 30\n3 40\n",
    }
    dataset = TextLoader().load(blobs)
    assert dataset.rate(1).tolist() == [10.0, 0.0, 30.0, 40.0]


def test_condition_rows_are_matched_by_time_column() -> None:
    blobs = _qt_blobs()
    blobs["qt_conditions.txt"] = "Time_s Tgas E/N\n2.0e-9 302 100\n0.0 300 100\n0.0 999 999\n"
    dataset = TextLoader().load(blobs)
    assert dataset.condition(1).tolist() == [300.0, 0.0, 302.0]
    assert dataset.condition(2).tolist() == [100.0, 0.0, 100.0]


def test_out_of_range_matrix_coefficient_gives_zero_matrix() -> None:
    with pytest.raises(MalformedRowError, match="out of range"):
        parse_matrix_file("99999999999999999999999\n")
    with pytest.raises(MalformedRowError, match="out of range"):
        parse_matrix_file("1e30\n")

    blobs = _qt_blobs()
    blobs["qt_matrix.txt"] = "99999999999999999999999\n"
    dataset = TextLoader().load(blobs)
    assert dataset.source_matrix.shape == (3, 2)
    assert not dataset.source_matrix.any()


def test_bytes_blobs_and_paths_are_accepted() -> None:
    blobs = {f"run/{name}": text.encode("utf-8") for name, text in _qt_blobs().items()}
    dataset = TextLoader().load(blobs)
    assert dataset.species == ("e", "O2", "O(1D)")


def test_loading_twice_is_deterministic() -> None:
    first = TextLoader().load(_qt_blobs())
    second = TextLoader().load(_qt_blobs())
    assert first.species == second.species
    assert np.array_equal(first.t, second.t)
    for key in first.rates:
        assert np.array_equal(first.rate(key), second.rate(key))
