"""Unit tests for keyword categorization."""
import pytest

from processor.categorizer import category_label, categorize


class TestCategorize:
    """Test cases for categorize."""

    def test_breakfast_club(self):
        """Test a plain breakfast club."""
        result = categorize('Veterans Breakfast Club', 'breakfast and chat')

        assert result.tags == ['breakfast-club']
        assert result.primary == 'breakfast-club'

    def test_clay_pigeon_suppresses_breakfast(self):
        """Test that clay pigeon events with breakfast are sport only."""
        result = categorize('Clay Pigeon Shooting Morning', 'breakfast provided before shoot')

        assert result.tags == ['sport']
        assert result.primary == 'sport'

    def test_multiple_tags_keep_rule_order(self):
        """Test that tags follow rule order, not alphabetical order."""
        result = categorize('Drop-In Social', 'Welfare advice and a cuppa')

        assert result.tags == ['drop-in', 'support', 'social']
        assert result.primary == 'drop-in'

    def test_no_match_is_other(self):
        """Test that unmatched events fall back to 'other'."""
        result = categorize('Remembrance Parade', 'Wreath laying at the cenotaph')

        assert result.tags == []
        assert result.primary == 'other'

    def test_none_inputs(self):
        """Test that missing title and description are tolerated."""
        result = categorize(None, None)

        assert result.tags == []
        assert result.primary == 'other'

    def test_naafi_break(self):
        """Test the NAAFI break rule."""
        assert 'breakfast-club' in categorize('NAAFI Break', 'Tea and biscuits').tags

    def test_naafi_break_with_drop_in_description(self):
        """Test that a drop in description suppresses the NAAFI break tag."""
        result = categorize('NAAFI Break', 'Weekly drop in for everyone')

        assert 'breakfast-club' not in result.tags
        assert result.primary == 'drop-in'

    def test_substring_semantics(self):
        """Test that keywords match inside longer words."""
        assert categorize('Workshopping ideas', '').tags == ['workshop']

    def test_sport_from_title_only(self):
        """Test that 'sport' counts in the title but not the description."""
        assert categorize('Sports Day', '').tags == ['sport']
        assert categorize('Day out', 'sports').tags == []

    def test_meeting_abbreviations(self):
        """Test RBL and DLI abbreviations."""
        assert categorize('RBL Hebburn', '').primary == 'meeting'
        assert categorize('DLI Association', '').tags == ['meeting']

    @pytest.mark.parametrize('title,description', [
        ('Veterans Breakfast Club', 'breakfast and chat'),
        ('Support Group Session', 'Confidential support group'),
        ('Random', 'nothing here'),
        ('', ''),
        ('Golf and party', 'training course'),
    ])
    def test_primary_is_first_tag_or_other(self, title, description):
        """Test that primary is always the first tag, or 'other'."""
        result = categorize(title, description)

        assert result.primary
        if result.tags:
            assert result.primary == result.tags[0]
        else:
            assert result.primary == 'other'


class TestCategoryLabel:
    """Test cases for category_label."""

    def test_known_label(self):
        assert category_label('sport') == 'Sport & Recreation'

    def test_unknown_label_passes_through(self):
        assert category_label('mystery') == 'mystery'
