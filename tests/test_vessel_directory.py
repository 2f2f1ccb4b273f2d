"""
Tests for VesselDirectory
"""
import pytest

from vesselbot.domain.directory.vessel_directory import (
    VesselDirectory, levenshtein, looks_like_identifier
)
from vesselbot.domain.models.conversation import VesselRecord


@pytest.mark.parametrize("a,b,expected", [
    ("", "", 0),
    ("abc", "", 3),
    ("kitten", "sitting", 3),
    ("GCL YAMUNA", "GCL YAMONA", 1),
])
def test_levenshtein(a, b, expected):
    assert levenshtein(a, b) == expected


def test_looks_like_identifier():
    assert looks_like_identifier(" 9481219 ")
    assert not looks_like_identifier("GCL 9481219")


def test_exact_match_ignores_case(directory):
    record = directory.find_by_name("  gcl yamuna ")
    assert record.canonical_name == "GCL YAMUNA"
    assert record.identifier == "9481219"


def test_partial_match(directory):
    """Test substring match in either direction"""
    assert directory.find_by_name("YAMUNA").identifier == "9481219"
    assert directory.find_by_name("VESSEL GCL TAPI PLEASE").identifier == "9481221"


def test_one_character_deletion_resolves(directory):
    assert directory.find_by_name("GCL YAMUN").identifier == "9481219"
    assert directory.find_by_name("gcl yamuna") == directory.find_by_name("GCL YAMUNA")


def test_fuzzy_match_within_two_edits(directory):
    record = directory.find_by_name("GCL YAMONA")
    assert record.canonical_name == "GCL YAMUNA"


def test_fuzzy_match_rejects_distant_names(directory):
    assert directory.find_by_name("GCL YXMXNX") is None
    assert directory.find_by_name("XYZ") is None


def test_fuzzy_tie_goes_to_first_entry():
    directory = VesselDirectory(records=[
        VesselRecord(canonical_name="BRAVO A", identifier="1"),
        VesselRecord(canonical_name="BRAVO B", identifier="2"),
    ])
    # one edit away from both names
    assert directory.find_by_name("BRAVO C").identifier == "1"


@pytest.mark.parametrize("query", [None, "", "   ", 42])
def test_find_by_name_invalid_input(directory, query):
    assert directory.find_by_name(query) is None


def test_find_by_identifier(directory):
    assert directory.find_by_identifier("9481233").canonical_name == "GCL GANGA"
    assert directory.find_by_identifier(9481221).canonical_name == "GCL TAPI"
    assert directory.find_by_identifier("0000000") is None
    assert directory.find_by_identifier(None) is None
    assert directory.find_by_identifier(True) is None


def test_resolve_uses_identifier_for_digits(directory):
    assert directory.resolve("9481219").canonical_name == "GCL YAMUNA"
    # a number that isn't listed is not fuzzy matched against names
    assert directory.resolve("9481218") is None
    assert directory.resolve("gcl ganga").identifier == "9481233"


def test_load_csv(tmp_path):
    """Test CSV loading skips the header and incomplete rows"""
    csv_path = tmp_path / "vessel-mappings.csv"
    csv_path.write_text(
        "vessel_name,imo\n"
        '"GCL YAMUNA", 9481219\n'
        "BROKEN ROW\n"
        ",9999999\n"
        "\n"
        "GCL TAPI,9481221\n",
        encoding="utf-8",
    )

    directory = VesselDirectory(csv_path)
    records = directory.load()

    assert [(r.canonical_name, r.identifier) for r in records] == [
        ("GCL YAMUNA", "9481219"),
        ("GCL TAPI", "9481221"),
    ]
    assert directory.find_by_name("tapi").identifier == "9481221"


def test_load_missing_file(tmp_path):
    directory = VesselDirectory(tmp_path / "missing.csv")
    assert directory.load() == []
    assert directory.find_by_name("GCL YAMUNA") is None


def test_reload_picks_up_changes(tmp_path):
    csv_path = tmp_path / "vessel-mappings.csv"
    csv_path.write_text("vessel_name,imo\nGCL TAPI,9481221\n", encoding="utf-8")
    directory = VesselDirectory(csv_path)
    assert len(directory.load()) == 1

    csv_path.write_text("vessel_name,imo\nGCL TAPI,9481221\nGCL GANGA,9481233\n", encoding="utf-8")
    assert len(directory.load()) == 1
    assert len(directory.reload()) == 2
