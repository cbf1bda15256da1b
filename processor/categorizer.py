"""Keyword-based categorization of events."""
from typing import Optional

from processor.models import Categorization

OTHER = 'other'

SUPPORT_KEYWORDS = ('support', 'counselling', 'therapy', 'help', 'advice', 'welfare')
MEETING_KEYWORDS = (
    'meeting', 'branch meeting', 'association', 'rbl', 'royal british legion', 'dli'
)
WORKSHOP_KEYWORDS = ('workshop', 'training', 'course', 'seminar')
SOCIAL_KEYWORDS = ('social', 'mixer', 'party', 'celebration')
SPORT_KEYWORDS = (
    'clay pigeon', 'shooting', 'football', 'rugby', 'sailing', 'fishing', 'golf',
    'cycling', 'walking', 'hiking', 'swimming', 'offshore sailing',
)

CATEGORY_LABELS = {
    'breakfast-club': 'Breakfast Club',
    'drop-in': 'Drop-In Centre',
    'meeting': 'Association Meeting',
    'workshop': 'Workshop',
    'social': 'Social Event',
    'support': 'Support Group',
    'sport': 'Sport & Recreation',
    OTHER: 'Other',
}


def _contains_any(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def _is_breakfast_club(combined: str, description: str) -> bool:
    # Kept exactly as tuned against the live calendar, overlapping negations included.
    if 'breakfast club' in combined:
        return True
    if 'breakfast' in combined and 'clay pigeon' not in combined:
        return True
    return 'naafi break' in combined and 'drop in' not in description


def categorize(title: Optional[str], description: Optional[str]) -> Categorization:
    """
    Tag an event from substring matches over its title and description.

    Rules are evaluated independently in a fixed order; the first tag that
    matches becomes the primary category.

    Args:
        title: Event title
        description: Event description

    Returns:
        Categorization with all matched tags (rule order) and the primary tag
    """
    title_lower = (title or '').lower()
    description_lower = (description or '').lower()
    combined = f"{title_lower} {description_lower}"

    rules = (
        ('drop-in', 'drop in' in combined or 'drop-in' in combined),
        ('support', _contains_any(combined, SUPPORT_KEYWORDS)),
        ('breakfast-club', _is_breakfast_club(combined, description_lower)),
        ('meeting', _contains_any(combined, MEETING_KEYWORDS)),
        ('workshop', _contains_any(combined, WORKSHOP_KEYWORDS)),
        ('social', _contains_any(combined, SOCIAL_KEYWORDS)),
        ('sport', _contains_any(combined, SPORT_KEYWORDS) or 'sport' in title_lower),
    )
    tags = [tag for tag, matched in rules if matched]

    return Categorization(tags=tags, primary=tags[0] if tags else OTHER)


def category_label(category: str) -> str:
    """Human readable name for a category tag."""
    return CATEGORY_LABELS.get(category, category)
