"""Plain-text sanitization of calendar fields and search input."""
import re
import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

# Calendar titles are often bare URLs or paths; they are still markup to us.
warnings.filterwarnings('ignore', category=MarkupResemblesLocatorWarning)

ACTIVE_CONTENT_TAGS = ['script', 'iframe', 'object', 'embed']
NEWLINES_PATTERN = re.compile(r'\n+')
INVISIBLE_SEQUENCE = '\u0080\u008b'
SEARCH_UNSAFE_PATTERN = re.compile(r'[<>"\']')

MAX_SEARCH_LENGTH = 100


def _text_pass(text: str) -> str:
    soup = BeautifulSoup(text, 'html.parser')
    for tag in soup.find_all(ACTIVE_CONTENT_TAGS):
        tag.decompose()
    return soup.get_text().strip()


def _html_pass(text: str) -> str:
    soup = BeautifulSoup(text, 'html.parser')

    for tag in soup.find_all(ACTIVE_CONTENT_TAGS):
        tag.decompose()

    for tag in soup.find_all(True):
        for attribute in [name for name in tag.attrs if name.lower().startswith('on')]:
            del tag[attribute]

    for line_break in soup.find_all('br'):
        line_break.replace_with('\n')
    for paragraph in soup.find_all('p'):
        paragraph.append('\n')

    text = soup.get_text().replace(INVISIBLE_SEQUENCE, '')
    return NEWLINES_PATTERN.sub(' ', text).strip()


def _to_fixed_point(text: str, single_pass) -> str:
    # A pass only removes markup or decodes entities, so the text never
    # grows and the loop terminates.
    while True:
        cleaned = single_pass(text)
        if cleaned == text:
            return cleaned
        text = cleaned


def sanitize_text(raw) -> str:
    """
    Strip markup from a short text field and decode entities.

    Decoded entities are re-parsed, so markup smuggled in as "&lt;b&gt;"
    is stripped as well and the result is stable under re-sanitization.

    Args:
        raw: Raw field value, may be None

    Returns:
        Plain, trimmed text ('' for empty input)
    """
    if not raw:
        return ''
    return _to_fixed_point(str(raw), _text_pass)


def sanitize_html(raw) -> str:
    """
    Convert an HTML description to single-line display text.

    Active content (script, iframe, object, embed) is decomposed together
    with its payload and inline on* handlers are dropped before the text
    is extracted. Paragraph and line breaks become spaces.

    Args:
        raw: Raw HTML, may be None

    Returns:
        Plain single-line text ('' for empty input)
    """
    if not raw:
        return ''
    return _to_fixed_point(str(raw), _html_pass)


def validate_search_input(raw) -> str:
    """Trim, length-limit and strip quote/angle characters from a search box value."""
    if not raw or not isinstance(raw, str):
        return ''
    cleaned = raw.strip()[:MAX_SEARCH_LENGTH]
    return SEARCH_UNSAFE_PATTERN.sub('', cleaned)
