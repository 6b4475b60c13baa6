"""
Internationalization (i18n) system for VMware Sign Manager
"""

import json
import locale
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ('en', 'fr')


class I18n:
    """Translation manager"""

    def __init__(self, config_file=None, translations_dir=None):
        if config_file is None:
            config_file = Path.home() / ".config" / "vmware-sign-manager" / "language.conf"
        if translations_dir is None:
            translations_dir = Path(__file__).parent.parent / "translations"

        self.config_file = Path(config_file)
        self.translations_dir = Path(translations_dir)
        self.translations = {}
        self.load_translations()
        self.current_lang = self._load_saved_language() or self._detect_language()

    def _detect_language(self):
        """Detect system language"""
        try:
            system_locale = locale.getlocale()[0]
            if system_locale:
                lang = system_locale.split('_')[0].lower()
                # Support only French and English for now
                return 'fr' if lang == 'fr' else 'en'
        except ValueError:
            pass

        # Check environment variable
        lang = os.environ.get('LANG', '').lower()
        if lang.startswith('fr'):
            return 'fr'

        # Default to English
        return 'en'

    def load_translations(self):
        """Load translation files"""
        for lang_file in self.translations_dir.glob("*.json"):
            lang_code = lang_file.stem
            try:
                with open(lang_file, 'r', encoding='utf-8') as f:
                    self.translations[lang_code] = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning("Error loading translation %s: %s", lang_code, e)

    def _load_saved_language(self):
        """Load saved language preference"""
        try:
            if self.config_file.exists():
                lang = self.config_file.read_text().strip()
                if lang in SUPPORTED_LANGUAGES:
                    return lang
        except OSError:
            pass
        return None

    def _save_language(self, lang_code):
        """Save language preference"""
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(lang_code)
        except OSError as e:
            logger.debug("Unable to save language preference: %s", e)

    def set_language(self, lang_code, save=True):
        """Set current language, saving it as the preference unless save is False"""
        if lang_code in self.translations:
            self.current_lang = lang_code
            if save:
                self._save_language(lang_code)
            return True
        return False

    def get_language(self):
        """Get current language"""
        return self.current_lang

    def _(self, key, **kwargs):
        """Translate a key"""
        translation = self.translations.get(self.current_lang)
        if translation is None:
            translation = self.translations.get('en', {})

        # Navigate through nested keys (e.g., "menu.exit")
        for k in key.split('.'):
            if isinstance(translation, dict):
                translation = translation.get(k)
                if translation is None:
                    return key
            else:
                return key

        if not isinstance(translation, str):
            return key

        # Replace placeholders if provided
        if kwargs:
            try:
                translation = translation.format(**kwargs)
            except KeyError:
                pass

        return translation

    def yes_answers(self):
        """Accepted affirmative answers for the current language"""
        answers = {'y', 'yes'}
        extra = self._("prompt.yes_answers")
        if extra != "prompt.yes_answers":
            answers.update(a.strip().lower() for a in extra.split(',') if a.strip())
        return tuple(sorted(answers))

    def get_available_languages(self):
        """Get list of available languages"""
        return list(self.translations.keys())


# Global instance
_i18n_instance = None


def get_i18n():
    """Get global i18n instance"""
    global _i18n_instance
    if _i18n_instance is None:
        _i18n_instance = I18n()
    return _i18n_instance