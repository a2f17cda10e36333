"""
Home screen category versions.

What the home screen shows is stored as append-only snapshots in
``home_category_orders``: every save writes one row per top-level category,
all sharing a fresh ``version_id`` and ``created_at``. Rows are never updated
or deleted. The current version is the one written last; rolling back copies
an old version's rows under a new version.

Rows written before versions existed have no ``version_id`` and are ignored.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..exceptions import NotFoundError, ValidationFailed
from .category_hierarchy import CategoryNode, CategoryTree

logger = logging.getLogger(__name__)

ORDERS_TABLE = 'home_category_orders'
CATEGORIES_TABLE = 'product_categories'
HIDDEN_ORDER = 999
VERSION_LIMIT = 20


@dataclass
class HomeCategoryEntry:
    category_id: str
    display_order: int
    is_visible: bool
    category: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category_id': self.category_id,
            'display_order': self.display_order,
            'is_visible': self.is_visible,
            'category': self.category,
        }


@dataclass
class HomeCategoryVersion:
    version_id: str
    created_at: str
    entries: List[HomeCategoryEntry] = field(default_factory=list)

    @property
    def visible_category_ids(self) -> List[str]:
        return [e.category_id for e in self.entries if e.is_visible]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version_id': self.version_id,
            'created_at': self.created_at,
            'categories': [entry.to_dict() for entry in self.entries],
        }


def build_version_rows(top_level: Iterable[CategoryNode], selected_ids: List[str],
                       version_id: str, created_at: str,
                       hidden_order: int = HIDDEN_ORDER) -> List[Dict[str, Any]]:
    """
    Rows of a new version: one per top-level category.

    Selected categories get their 1-based position in ``selected_ids`` and are
    visible; every other top-level category gets ``hidden_order`` and is hidden.
    """
    top_level = list(top_level)
    top_level_ids = {node.id for node in top_level}

    if len(set(selected_ids)) != len(selected_ids):
        raise ValidationFailed("A category can only be selected once")
    unknown = [cid for cid in selected_ids if cid not in top_level_ids]
    if unknown:
        raise ValidationFailed(
            "Only top-level categories can be shown on the home screen",
            details={'category_ids': unknown}
        )

    positions = {cid: index + 1 for index, cid in enumerate(selected_ids)}
    return [
        {
            'version_id': version_id,
            'category_id': node.id,
            'display_order': positions.get(node.id, hidden_order),
            'is_visible': node.id in positions,
            'created_at': created_at,
        }
        for node in top_level
    ]


class HomeCategoryVersionStore:
    """Reads and writes home screen category versions."""

    def __init__(self, db, clock: Optional[Callable[[], datetime]] = None,
                 id_factory: Callable[[], Any] = uuid.uuid4,
                 hidden_order: int = HIDDEN_ORDER, version_limit: int = VERSION_LIMIT):
        self.db = db
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.id_factory = id_factory
        self.hidden_order = hidden_order
        self.version_limit = version_limit

    def _categories(self) -> CategoryTree:
        return CategoryTree(self.db.fetch_all(
            self.db.table(CATEGORIES_TABLE).select('*'),
            'fetching categories'
        ))

    def _version_rows(self, version_id: str) -> List[Dict[str, Any]]:
        return self.db.fetch_all(
            self.db.table(ORDERS_TABLE).select('*').eq('version_id', version_id).order('display_order'),
            f'fetching home category version {version_id}'
        )

    def _to_version(self, rows: List[Dict[str, Any]], tree: Optional[CategoryTree] = None) -> HomeCategoryVersion:
        rows = sorted(rows, key=lambda r: r['display_order'])
        entries = []
        for row in rows:
            node = tree.get(row['category_id']) if tree is not None else None
            entries.append(HomeCategoryEntry(
                category_id=str(row['category_id']),
                display_order=row['display_order'],
                is_visible=bool(row['is_visible']),
                category=node.to_dict() if node else None,
            ))
        return HomeCategoryVersion(version_id=rows[0]['version_id'], created_at=rows[0]['created_at'], entries=entries)

    def _insert_version(self, rows: List[Dict[str, Any]]) -> None:
        # One insert request is one statement, so a version lands whole or not at all
        self.db.execute(self.db.table(ORDERS_TABLE).insert(rows), 'saving home category version')

    def _new_version_stamp(self):
        return str(self.id_factory()), self.clock().isoformat()

    def load_current(self) -> Optional[HomeCategoryVersion]:
        """The most recently written version, or None when nothing was saved yet."""
        latest = self.db.fetch_one(
            self.db.table(ORDERS_TABLE).select('version_id, created_at')
                .not_.is_('version_id', 'null')
                .order('created_at', desc=True).limit(1),
            'fetching latest home category version'
        )
        if latest is None:
            return None
        rows = self._version_rows(latest['version_id'])
        if not rows:
            return None
        return self._to_version(rows, self._categories())

    def get_version(self, version_id: str) -> HomeCategoryVersion:
        rows = self._version_rows(version_id)
        if not rows:
            raise NotFoundError(f"Home category version {version_id} not found")
        return self._to_version(rows, self._categories())

    def list_versions(self, limit: Optional[int] = None) -> List[HomeCategoryVersion]:
        """Most recent versions first, each ordered by display order."""
        limit = limit or self.version_limit
        rows = self.db.fetch_all(
            self.db.table(ORDERS_TABLE).select('*')
                .not_.is_('version_id', 'null')
                .order('created_at', desc=True),
            'fetching home category versions'
        )

        groups: Dict[str, List[Dict[str, Any]]] = {}
        for row in rows:
            groups.setdefault(row['version_id'], []).append(row)

        tree = self._categories()
        versions = [self._to_version(group, tree) for group in groups.values()]
        versions.sort(key=lambda v: v.created_at, reverse=True)
        return versions[:limit]

    def top_level_categories(self) -> List[CategoryNode]:
        return self._categories().roots()

    def current_selection(self) -> List[str]:
        """Visible top-level category ids of the current version, in display order."""
        current = self.load_current()
        if current is None:
            return []
        tree = self._categories()
        return [
            cid for cid in current.visible_category_ids
            if cid in tree and not tree.get(cid).parent_id
        ]

    def save_version(self, selected_ids: List[str]) -> HomeCategoryVersion:
        """Write a complete new version from the curated, ordered selection."""
        tree = self._categories()
        version_id, created_at = self._new_version_stamp()
        rows = build_version_rows(tree.roots(), [str(cid) for cid in selected_ids], version_id, created_at, self.hidden_order)
        if not rows:
            raise ValidationFailed("There are no top-level categories to order")

        self._insert_version(rows)
        logger.info(f"Saved home category version {version_id} ({len(selected_ids)} visible)")
        return self._to_version(rows, tree)

    def rollback(self, version_id: str) -> HomeCategoryVersion:
        """
        Make ``version_id`` current again by copying its rows into a new
        version. The source version is left untouched.
        """
        source = self._version_rows(version_id)
        if not source:
            raise NotFoundError(f"Home category version {version_id} not found")

        new_version_id, created_at = self._new_version_stamp()
        rows = [
            {
                'version_id': new_version_id,
                'category_id': row['category_id'],
                'display_order': row['display_order'],
                'is_visible': row['is_visible'],
                'created_at': created_at,
            }
            for row in source
        ]
        self._insert_version(rows)
        logger.info(f"Rolled back home categories to {version_id} as {new_version_id}")
        return self._to_version(rows, self._categories())
