"""
Tests for vmware_sign_manager.utils.i18n.
"""

import json

import pytest

from vmware_sign_manager.utils.i18n import I18n


def flatten(data, prefix=""):
    keys = set()
    for key, value in data.items():
        if isinstance(value, dict):
            keys |= flatten(value, f"{prefix}{key}.")
        else:
            keys.add(f"{prefix}{key}")
    return keys


class TestTranslations:
    """Tests for key lookup."""

    def test_lookup(self, i18n):
        assert i18n._("menu.option_exit") == "Exit"

    def test_placeholders(self, i18n):
        assert i18n._("sign.module_ok", module="vmmon") == "vmmon signed"

    def test_missing_placeholder_keeps_template(self, i18n):
        assert i18n._("sign.module_ok") == "{module} signed"

    def test_unknown_key(self, i18n):
        assert i18n._("menu.does_not_exist") == "menu.does_not_exist"

    def test_section_key_is_not_a_string(self, i18n):
        assert i18n._("menu") == "menu"

    def test_french(self, i18n):
        i18n.current_lang = 'fr'
        assert i18n._("menu.option_exit") == "Quitter"

    def test_languages_have_same_keys(self, i18n):
        en = flatten(i18n.translations['en'])
        fr = flatten(i18n.translations['fr'])
        assert en == fr


class TestYesAnswers:
    """Tests for localized confirmation answers."""

    def test_english(self, i18n):
        assert set(i18n.yes_answers()) == {'y', 'yes'}

    def test_french_keeps_english(self, i18n):
        i18n.current_lang = 'fr'
        assert {'o', 'oui', 'y', 'yes'} <= set(i18n.yes_answers())


class TestLanguagePreference:
    """Tests for the saved language file."""

    def test_set_language_is_saved(self, tmp_path):
        config = tmp_path / "language.conf"
        i18n = I18n(config_file=config)

        assert i18n.set_language('fr')
        assert config.read_text() == 'fr'
        assert I18n(config_file=config).get_language() == 'fr'

    def test_set_language_without_saving(self, tmp_path):
        config = tmp_path / "language.conf"
        i18n = I18n(config_file=config)

        assert i18n.set_language('fr', save=False)
        assert i18n.get_language() == 'fr'
        assert not config.exists()

    def test_unknown_language_rejected(self, i18n):
        assert not i18n.set_language('de')

    def test_invalid_saved_language_ignored(self, tmp_path, monkeypatch):
        config = tmp_path / "language.conf"
        config.write_text("klingon")
        monkeypatch.setenv("LANG", "C")
        monkeypatch.setattr("locale.getlocale", lambda *a: (None, None))

        assert I18n(config_file=config).get_language() == 'en'

    @pytest.mark.parametrize("lang,expected", [("fr_FR.UTF-8", "fr"), ("en_US.UTF-8", "en")])
    def test_detect_from_lang(self, tmp_path, monkeypatch, lang, expected):
        monkeypatch.setenv("LANG", lang)
        monkeypatch.setattr("locale.getlocale", lambda *a: (None, None))

        assert I18n(config_file=tmp_path / "none.conf").get_language() == expected

    def test_broken_translation_file(self, tmp_path):
        translations = tmp_path / "translations"
        translations.mkdir()
        (translations / "en.json").write_text(json.dumps({"menu": {"option_exit": "Quit"}}))
        (translations / "fr.json").write_text("{broken")

        i18n = I18n(config_file=tmp_path / "none.conf", translations_dir=translations)

        assert i18n.get_available_languages() == ['en']
        i18n.current_lang = 'fr'
        # falls back to English when the language failed to load
        assert i18n._("menu.option_exit") == "Quit"
