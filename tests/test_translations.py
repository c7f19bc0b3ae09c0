"""
Tests for interface translations
"""
from billbox.services.translations import LANGUAGES, TRANSLATIONS, translate


class TestTranslate:
    """Test string lookup"""

    def test_every_language_has_every_key(self):
        """Test the tables cover the same strings"""
        for language in LANGUAGES:
            assert set(TRANSLATIONS[language]) == set(TRANSLATIONS['en'])

    def test_translate(self):
        """Test lookup in the chosen language"""
        assert translate('upcoming_bills', 'hi') == 'आने वाले बिल'
        assert translate('upcoming_bills', 'es') == 'Próximas Facturas'
        assert translate('upcoming_bills') == 'Upcoming Bills'

    def test_fallbacks(self):
        """Test unknown languages use English and unknown keys show as-is"""
        assert translate('income', 'fr') == 'Income'
        assert translate('no_such_key', 'hi') == 'no_such_key'
