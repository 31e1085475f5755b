"""Display helpers shared by cards and widgets."""

import math

from bs4 import BeautifulSoup


def extract_text_from_html(html: str | None) -> str:
    """Strip tags from a title or description that may carry HTML spans."""
    if not html:
        return ""
    if "<" not in html and "&" not in html:
        return html
    return BeautifulSoup(html, "html.parser").get_text()


def format_reading_time(seconds: int | None) -> str:
    """Render a reading-time estimate as whole minutes, rounded up."""
    if not seconds:
        return ""
    return f"{math.ceil(seconds / 60)} min"


def validate_pages(total_pages: int | None, current_page: int | None) -> str | None:
    """Check a page-count pair. Returns an error message, or None when valid."""
    if total_pages is not None and total_pages <= 0:
        return "Total pages must be greater than 0"
    if current_page is not None and current_page < 0:
        return "Current page cannot be negative"
    if total_pages is not None and current_page is not None and current_page > total_pages:
        return "Current page cannot exceed total pages"
    return None


def validate_page_change(new_page: int, total_pages: int | None) -> str | None:
    if total_pages and new_page > total_pages:
        return "Page cannot exceed total pages"
    if new_page < 0:
        return "Page cannot be negative"
    return None
