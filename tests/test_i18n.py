"""Tests for the response message catalog."""

import pytest

from team_memory.utils.i18n import TRANSLATIONS, Messages, available_languages


def test_available_languages():
    assert available_languages() == ["en", "es"]


def test_catalogs_have_the_same_keys():
    assert set(TRANSLATIONS["en"]) == set(TRANSLATIONS["es"])


@pytest.mark.parametrize("language, expected", [
    ("en", "User Chris saved:"),
    ("es", "El usuario Chris guardó:"),
])
def test_substitution(language, expected):
    assert Messages(language).t("user_saved", user="Chris") == expected


def test_unknown_language_falls_back_to_english():
    messages = Messages("fr")
    assert messages.language == "en"
    assert messages.t("untitled") == "Untitled"


def test_missing_key_returns_key():
    assert Messages("es").t("no_such_message") == "no_such_message"


def test_missing_translation_falls_back_to_english(monkeypatch):
    monkeypatch.delitem(TRANSLATIONS["es"], "search_tip")
    assert Messages("es").t("search_tip") == TRANSLATIONS["en"]["search_tip"]


def test_unused_variables_are_ignored():
    assert Messages("en").t("untitled", user="Chris") == "Untitled"
