"""
Tests for candidate name and contact extraction
"""

import pytest

from ats_components import UNKNOWN_CANDIDATE, NameExtractor


class TestNameExtractor:
    """Tests for best-effort name detection"""

    @pytest.fixture
    def extractor(self):
        return NameExtractor()

    def test_name_on_first_line(self, extractor):
        assert extractor.extract_name("John Smith\nSoftware Engineer\nPython, SQL") == "John Smith"

    def test_header_tokens_stripped(self, extractor):
        assert extractor.extract_name("RESUME - Jane Doe\nData Analyst") == "Jane Doe"

    def test_labelled_name(self, extractor):
        text = "PROFESSIONAL PROFILE\nName: Alice Walker\nEmail: alice@example.com"
        assert extractor.extract_name(text) == "Alice Walker"

    def test_name_from_email(self, extractor):
        text = "contact me at jane.doe@example.com\n+1 555 0100"
        assert extractor.extract_name(text) == "Jane Doe"

    def test_unknown_candidate(self, extractor):
        assert extractor.extract_name("12345\n!!!") == UNKNOWN_CANDIDATE
        assert extractor.extract_name("") == UNKNOWN_CANDIDATE

    @pytest.mark.parametrize("name,valid", [
        ("Jane Doe", True),
        ("Mary Ann Lee Smith", True),
        ("Jane", False),
        ("Contact Details", False),
        ("Jane doe", False),
        ("One Two Three Four Five", False),
    ])
    def test_is_valid_name(self, extractor, name, valid):
        assert extractor.is_valid_name(name) is valid
