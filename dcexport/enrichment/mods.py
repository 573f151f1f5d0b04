"""Location and date extraction from MODS documents.

MODS arrives as loosely structured JSON:
- `subject` and `originInfo` are a bare object when they occur once and a
  list otherwise. Text nodes inside them are read only when they are a
  single object; a list of text nodes yields no value.
- Text nodes look like {"$": "Bronx (New York, N.Y.)"}; date nodes may also
  carry attributes such as {"$": "1915", "keyDate": "yes"}.

A record often holds several redundant or partial values for the same field.
Candidates are gathered in document order and handed to a ranker that picks
one. The default ranker takes the longest string, first occurrence on ties.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence

from dcexport.enrichment.models import CachedMetadata

Ranker = Callable[[Sequence[str]], Optional[str]]

# Checked in this order; the first one present on an originInfo entry is used.
DATE_FIELDS = ("dateCreated", "dateIssued", "dateOther")


def longest_value(values: Sequence[str]) -> Optional[str]:
    """Return the longest value by character count; earlier values win ties."""
    best: Optional[str] = None
    for value in values:
        if best is None or len(value) > len(best):
            best = value
    return best


def as_list(value: Any) -> List[Any]:
    """Wrap a single MODS element in a list; None becomes an empty list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def text_value(node: Any) -> Optional[str]:
    """Text of a {"$": ...} node, or None when empty or not a text node."""
    if not isinstance(node, dict):
        return None
    text = node.get("$")
    if isinstance(text, str) and text:
        return text
    return None


def geographic_candidates(mods: Dict[str, Any]) -> List[str]:
    """All non-empty `subject/geographic` values, in document order.

    Only a single text node counts; a list-valued `geographic` is skipped.
    """
    candidates = []
    for subject in as_list(mods.get("subject")):
        if not isinstance(subject, dict):
            continue
        text = text_value(subject.get("geographic"))
        if text:
            candidates.append(text)
    return candidates


def key_date_candidates(mods: Dict[str, Any]) -> List[str]:
    """Key-date values from `originInfo`, in document order.

    Per entry only the first present field of DATE_FIELDS is considered, and
    only when it is a single node with its `keyDate` flag set. A list of
    date nodes carries no flag of its own and is skipped.
    """
    candidates = []
    for origin in as_list(mods.get("originInfo")):
        if not isinstance(origin, dict):
            continue

        date_node = next((origin[f] for f in DATE_FIELDS if origin.get(f)), None)
        if not isinstance(date_node, dict) or not date_node.get("keyDate"):
            continue
        text = text_value(date_node)
        if text:
            candidates.append(text)
    return candidates


def extract_location(mods: Optional[Dict[str, Any]], rank: Ranker = longest_value) -> Optional[str]:
    if not mods:
        return None
    return rank(geographic_candidates(mods))


def extract_date(mods: Optional[Dict[str, Any]], rank: Ranker = longest_value) -> Optional[str]:
    if not mods:
        return None
    return rank(key_date_candidates(mods))


def mods_to_metadata(mods: Optional[Dict[str, Any]], rank: Ranker = longest_value) -> CachedMetadata:
    """Extract the cacheable metadata of one MODS document.

    Args:
        mods: MODS document, or None when the item has none
        rank: Picks one value out of the candidates of a field

    Returns:
        CachedMetadata with absent fields left as None
    """
    return CachedMetadata(
        location=extract_location(mods, rank),
        date=extract_date(mods, rank),
    )
