"""
Unit tests for AssignedTo display-name translation.
"""

import pytest

from user_translator import UserTranslator

USER_MAP = {
    "James Schaffer": "Schaffer, James",
    "Blank Target": "",
}


@pytest.fixture
def translator():
    return UserTranslator(USER_MAP)


def test_mapped_name_is_translated(translator):
    assert translator.resolve("James Schaffer") == "Schaffer, James"


def test_unmapped_name_passes_through(translator):
    assert translator.resolve("Ada Lovelace") == "Ada Lovelace"


@pytest.mark.parametrize("name", ["", None])
def test_empty_name_is_returned_unchanged(translator, name):
    assert translator.resolve(name) == name


def test_empty_mapping_value_falls_back_to_source_name(translator):
    assert translator.resolve("Blank Target") == "Blank Target"


@pytest.mark.parametrize("name", ["James Schaffer", "Ada Lovelace", "Schaffer, James", ""])
def test_resolve_is_idempotent_once_translated(translator, name):
    once = translator.resolve(name)
    assert translator.resolve(once) == once


def test_no_map_means_identity():
    assert UserTranslator().resolve("Anyone") == "Anyone"
