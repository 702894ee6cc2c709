"""
Tests for identifier and entry-id extraction.
"""

import pytest

from chemnames.extract import extract_entry_id, extract_identifier, placeholder_label


class TestExtractIdentifier:
    """Test field priority and fallbacks."""

    def test_direct_field(self):
        assert extract_identifier({"smiles": "CCO"}) == "CCO"

    def test_alternate_field(self):
        assert extract_identifier({"smi_string": "CCN"}) == "CCN"

    def test_nested_metadata_field(self):
        assert extract_identifier({"meta": {"ori_smiles": "C1CC1"}}) == "C1CC1"

    def test_priority_order(self):
        entry = {"smiles": "C", "smi_string": "CC", "meta": {"ori_smiles": "CCC"}}
        assert extract_identifier(entry) == "C"

        del entry["smiles"]
        assert extract_identifier(entry) == "CC"

        del entry["smi_string"]
        assert extract_identifier(entry) == "CCC"

    def test_blank_values_skipped(self):
        entry = {"smiles": "   ", "smi_string": "", "meta": {"ori_smiles": "CCO"}}
        assert extract_identifier(entry) == "CCO"

    def test_whitespace_trimmed(self):
        assert extract_identifier({"smiles": "  CCO\n"}) == "CCO"

    @pytest.mark.parametrize("entry", [
        {},
        {"id": "gen-1"},
        {"smiles": None},
        {"smiles": 123},
        {"meta": "not a mapping"},
        {"meta": {"ori_smiles": ""}},
        None,
        "CCO",
    ])
    def test_no_identifier(self, entry):
        assert extract_identifier(entry) is None

    def test_does_not_mutate_entry(self):
        entry = {"smiles": "  CCO ", "meta": {"ori_smiles": "C"}}
        snapshot = {"smiles": "  CCO ", "meta": {"ori_smiles": "C"}}
        extract_identifier(entry)
        assert entry == snapshot


class TestExtractEntryId:
    def test_id_preferred(self):
        assert extract_entry_id({"id": "a", "generation_id": "b"}) == "a"

    def test_generation_id(self):
        assert extract_entry_id({"generation_id": 17}) == 17

    def test_missing(self):
        assert extract_entry_id({"smiles": "CCO"}) is None
        assert extract_entry_id({"id": "", "generation_id": None}) is None
        assert extract_entry_id(None) is None

    def test_zero_is_a_valid_id(self):
        assert extract_entry_id({"id": 0}) == 0


class TestPlaceholderLabel:
    def test_positions_are_one_based(self):
        assert placeholder_label(0) == "History 1"
        assert placeholder_label(4) == "History 5"
