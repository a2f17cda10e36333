"""
Category service.

CRUD for ``product_categories`` plus hierarchy lookups and bulk category
assignment for products.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..exceptions import CategoryCycleError, NotFoundError, ValidationFailed
from .category_hierarchy import CategoryHierarchy, CategoryTree

logger = logging.getLogger(__name__)

CATEGORIES_TABLE = 'product_categories'
PRODUCTS_TABLE = 'products'

_UNSET = object()


class CategoryService:
    """Service for category operations."""

    def __init__(self, db):
        self.db = db

    def list_categories(self) -> List[Dict[str, Any]]:
        """Get all categories"""
        return self.db.fetch_all(
            self.db.table(CATEGORIES_TABLE).select('*'),
            'fetching categories'
        )

    def load_tree(self) -> CategoryTree:
        return CategoryTree(self.list_categories())

    def get_tree(self, query: str = '') -> List[Dict[str, Any]]:
        """Flattened hierarchy, or flat name matches when ``query`` is given."""
        tree = self.load_tree()
        if query and query.strip():
            return [node.to_dict() for node in tree.search(query)]
        return [node.to_dict(level=level) for node, level in tree.flatten()]

    def get_hierarchy(self, category_id: str) -> CategoryHierarchy:
        hierarchy = self.load_tree().resolve(category_id)
        if hierarchy is None:
            raise NotFoundError(f"Category {category_id} not found")
        return hierarchy

    def create_category(self, name: str, parent_id: Optional[str] = None) -> Dict[str, Any]:
        """Create a new category"""
        name = (name or '').strip()
        if not name:
            raise ValidationFailed("Category name is required")

        if parent_id:
            parent = self.db.fetch_one(
                self.db.table(CATEGORIES_TABLE).select('id').eq('id', parent_id).limit(1),
                f'fetching parent category {parent_id}'
            )
            if parent is None:
                raise NotFoundError(f"Parent category {parent_id} not found")

        row = self.db.fetch_one(
            self.db.table(CATEGORIES_TABLE).insert({'name': name, 'parent_id': parent_id or None}),
            'creating category'
        )
        logger.info(f"Created category {name!r} (parent={parent_id})")
        return row

    def update_category(self, category_id: str, name: Optional[str] = None,
                        parent_id: Any = _UNSET) -> Dict[str, Any]:
        """
        Rename and/or re-parent a category.

        A new parent is checked against the current tree first: assigning a
        category below itself or one of its descendants is rejected.
        """
        tree = self.load_tree()
        if category_id not in tree:
            raise NotFoundError(f"Category {category_id} not found")

        update_data: Dict[str, Any] = {}
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationFailed("Category name is required")
            update_data['name'] = name

        if parent_id is not _UNSET:
            parent_id = parent_id or None
            if parent_id and parent_id not in tree:
                raise NotFoundError(f"Parent category {parent_id} not found")
            if tree.would_create_cycle(category_id, parent_id):
                raise CategoryCycleError()
            update_data['parent_id'] = parent_id

        if not update_data:
            raise ValidationFailed("Nothing to update")

        row = self.db.fetch_one(
            self.db.table(CATEGORIES_TABLE).update(update_data).eq('id', category_id),
            f'updating category {category_id}'
        )
        return row or {'id': category_id, **update_data}

    def delete_category(self, category_id: str) -> None:
        """Delete a category (hard delete)"""
        self.db.execute(
            self.db.table(CATEGORIES_TABLE).delete().eq('id', category_id),
            f'deleting category {category_id}'
        )
        logger.info(f"Deleted category {category_id}")

    def bulk_update_product_category(self, product_ids: List[str], category_id: str) -> int:
        """
        Assign one category to many products with a single update call.

        The call either succeeds for the whole batch or raises; there is no
        per-product error reporting.
        """
        product_ids = [pid for pid in dict.fromkeys(product_ids or []) if pid]
        if not product_ids:
            raise ValidationFailed("Select at least one product")
        if not category_id:
            raise ValidationFailed("Select a category")

        self.db.execute(
            self.db.table(PRODUCTS_TABLE)
                .update({'category_id': category_id, 'updated_at': datetime.now(timezone.utc).isoformat()})
                .in_('product_id', product_ids),
            'updating product categories'
        )
        logger.info(f"Assigned category {category_id} to {len(product_ids)} products")
        return len(product_ids)
