"""Pagination arithmetic for paged listings."""
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class Pagination:
    total_count: int
    page_size: int
    current_page: int = 1

    @property
    def offset(self) -> int:
        return (self.current_page - 1) * self.page_size

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def start_item(self) -> int:
        if self.total_count == 0:
            return 0
        return self.offset + 1

    @property
    def end_item(self) -> int:
        return min(self.current_page * self.page_size, self.total_count)

    @property
    def has_prev(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    def range(self):
        """Inclusive row range for the store's range() call"""
        return self.offset, self.offset + self.page_size - 1

    def page_window(self) -> List[Optional[int]]:
        """
        Page numbers to offer, with None marking a gap.

        Up to seven pages are all shown; beyond that the first and last page,
        the current page and its neighbours, plus page 2 / the second-to-last
        page when the current page is near either end.
        """
        total = self.total_pages
        current = self.current_page

        def shown(page):
            if total <= 7:
                return True
            if page in (1, total):
                return True
            if abs(page - current) <= 1:
                return True
            if page == 2 and current <= 3:
                return True
            if page == total - 1 and current >= total - 2:
                return True
            return False

        window: List[Optional[int]] = []
        for page in range(1, total + 1):
            if not shown(page):
                continue
            if window and window[-1] != page - 1:
                window.append(None)
            window.append(page)
        return window

    def to_dict(self) -> Dict[str, Any]:
        return {
            'page': self.current_page,
            'per_page': self.page_size,
            'total': self.total_count,
            'total_pages': self.total_pages,
            'start_item': self.start_item,
            'end_item': self.end_item,
            'has_next': self.has_next,
            'has_prev': self.has_prev,
            'pages': self.page_window(),
        }
