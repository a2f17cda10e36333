"""Parsing of the comma-separated link field used to register product sets."""
from typing import List


def parse_links(raw_input: str) -> List[str]:
    """
    Split raw link input into individual links.

    Pieces are separated by commas, lose every double quote and surrounding
    whitespace, and empty pieces are dropped. Order is kept and duplicates
    are not removed.
    """
    if not raw_input:
        return []
    links = (piece.replace('"', '').strip() for piece in raw_input.split(','))
    return [link for link in links if link]
