"""
Product service.

Paged product listing, product detail, edits and the product registration
cascade (row insert, image upload, image reference update).
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..exceptions import NotFoundError, StoreError, ValidationFailed
from ..pagination import Pagination
from .brand_service import BrandService
from .category_hierarchy import CategoryTree
from .product_set_service import ProductSetService

logger = logging.getLogger(__name__)

PRODUCTS_TABLE = 'products'
CATEGORIES_TABLE = 'product_categories'
BRANDS_TABLE = 'brands'
PRODUCT_COLUMNS = 'product_id, name, description, image_url, brand_id, category_id, created_at, updated_at'

SORT_FIELDS = ('created_at', 'name', 'brand')
SORT_DIRECTIONS = ('asc', 'desc')
CATEGORY_FILTERS = ('all', 'with', 'without')
EDITABLE_FIELDS = ('name', 'description', 'brand_id', 'category_id')


@dataclass
class ProductQuery:
    page: int = 1
    page_size: int = 20
    sort_field: str = 'created_at'
    sort_direction: str = 'desc'
    brand_id: Optional[str] = None
    category_filter: str = 'all'
    category_id: Optional[str] = None
    search: str = ''

    def __post_init__(self):
        if self.page < 1:
            raise ValidationFailed("page must be 1 or greater")
        if self.page_size < 1:
            raise ValidationFailed("per_page must be 1 or greater")
        if self.sort_field not in SORT_FIELDS:
            raise ValidationFailed(f"Unsupported sort field: {self.sort_field}")
        if self.sort_direction not in SORT_DIRECTIONS:
            raise ValidationFailed(f"Unsupported sort direction: {self.sort_direction}")
        if self.category_filter not in CATEGORY_FILTERS:
            raise ValidationFailed(f"Unsupported category filter: {self.category_filter}")

    @property
    def created_at_descending(self) -> bool:
        # name/brand sorts are applied to the fetched page, which is always
        # fetched newest first for them
        if self.sort_field == 'created_at':
            return self.sort_direction == 'desc'
        return True


@dataclass
class ProductPage:
    items: List[Dict[str, Any]]
    total_count: int
    pagination: Pagination

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'products': self.items,
            'totalCount': self.total_count,
            'pagination': self.pagination.to_dict(),
        }


@dataclass
class ImageUpload:
    filename: str
    content: bytes
    content_type: str = 'image/png'

    def extension(self, default: str = 'png') -> str:
        ext = os.path.splitext(self.filename or '')[1].lstrip('.').lower()
        return ext or default


def refine_page(items: List[Dict[str, Any]], search: str = '', sort_field: str = 'created_at',
                sort_direction: str = 'desc') -> List[Dict[str, Any]]:
    """
    Filter and sort an already fetched page.

    ``search`` matches name, description or brand name, case-insensitively.
    Name and brand sorts happen here; created_at order is the store's.
    """
    refined = list(items)

    needle = (search or '').strip().lower()
    if needle:
        def matches(product):
            brand_name = (product.get('brand') or {}).get('name') or ''
            return any(needle in (value or '').lower()
                       for value in (product.get('name'), product.get('description'), brand_name))
        refined = [p for p in refined if matches(p)]

    if sort_field == 'name':
        refined.sort(key=lambda p: (p.get('name') or '').lower(), reverse=sort_direction == 'desc')
    elif sort_field == 'brand':
        refined.sort(key=lambda p: ((p.get('brand') or {}).get('name') or '').lower(),
                     reverse=sort_direction == 'desc')
    return refined


class ProductService:
    """Service for product operations."""

    def __init__(self, db, static_base_url: str = '', default_image_extension: str = 'png'):
        self.db = db
        self.static_base_url = static_base_url
        self.default_image_extension = default_image_extension
        self.brands = BrandService(db)
        self.product_sets = ProductSetService(db)

    def public_image_url(self, image_url: Optional[str]) -> Optional[str]:
        if not image_url:
            return None
        return f"{self.static_base_url}{image_url}"

    def _format_product(self, row: Dict[str, Any], brand_names: Dict[str, str]) -> Dict[str, Any]:
        brand_id = row.get('brand_id')
        return {
            'id': row['product_id'],
            'product_id': row['product_id'],
            'name': row.get('name', ''),
            'description': row.get('description', ''),
            'image_url': row.get('image_url'),
            'image_public_url': self.public_image_url(row.get('image_url')),
            'brand_id': brand_id,
            'brand': {'name': brand_names[brand_id]} if brand_id in brand_names else None,
            'category_id': row.get('category_id'),
            'created_at': row.get('created_at'),
            'updated_at': row.get('updated_at'),
        }

    def _apply_filters(self, builder, query: ProductQuery):
        if query.brand_id and query.brand_id != 'all':
            builder = builder.eq('brand_id', query.brand_id)
        if query.category_filter == 'with':
            builder = builder.not_.is_('category_id', 'null')
        elif query.category_filter == 'without':
            builder = builder.is_('category_id', 'null')
        if query.category_id and query.category_id != 'all':
            builder = builder.eq('category_id', query.category_id)
        return builder

    def fetch_page(self, query: ProductQuery) -> ProductPage:
        """One page straight from the store: filters, created_at order, range."""
        total = self.db.count(
            self._apply_filters(
                self.db.table(PRODUCTS_TABLE).select('product_id', count='exact', head=True), query
            ),
            'counting products'
        )

        pagination = Pagination(total_count=total, page_size=query.page_size, current_page=query.page)
        start, end = pagination.range()
        rows = self.db.fetch_all(
            self._apply_filters(self.db.table(PRODUCTS_TABLE).select(PRODUCT_COLUMNS), query)
                .order('created_at', desc=query.created_at_descending)
                .range(start, end),
            'fetching products'
        )

        brand_names = self.brands.brand_names()
        items = [self._format_product(row, brand_names) for row in rows]
        return ProductPage(items=items, total_count=total, pagination=pagination)

    def list_products(self, query: ProductQuery) -> ProductPage:
        """
        Fetch a page and apply search and name/brand sorting to it.

        Search text and name/brand sorting only see the rows of the fetched
        page, so a search never reaches beyond the requested page.
        """
        page = self.fetch_page(query)
        page.items = refine_page(page.items, query.search, query.sort_field, query.sort_direction)
        return page

    def search_products(self, term: str) -> List[Dict[str, Any]]:
        """Typeahead search by name"""
        term = (term or '').strip()
        if not term:
            return []
        return self.db.fetch_all(
            self.db.table(PRODUCTS_TABLE).select('product_id, name').ilike('name', f'%{term}%').order('name'),
            'searching products'
        )

    def get_product(self, product_id: str) -> Dict[str, Any]:
        """Product with brand, category hierarchy and its product sets."""
        row = self.db.fetch_one(
            self.db.table(PRODUCTS_TABLE).select(PRODUCT_COLUMNS).eq('product_id', product_id).limit(1),
            f'fetching product {product_id}'
        )
        if row is None:
            raise NotFoundError(f"Product {product_id} not found")

        brand_names = {}
        if row.get('brand_id'):
            brand = self.db.fetch_one(
                self.db.table(BRANDS_TABLE).select('brand_id, name').eq('brand_id', row['brand_id']).limit(1),
                f'fetching brand {row["brand_id"]}'
            )
            if brand:
                brand_names[brand['brand_id']] = brand['name']

        product = self._format_product(row, brand_names)

        product['category_hierarchy'] = None
        if row.get('category_id'):
            tree = CategoryTree(self.db.fetch_all(
                self.db.table(CATEGORIES_TABLE).select('*'), 'fetching categories'
            ))
            hierarchy = tree.resolve(row['category_id'])
            product['category_hierarchy'] = hierarchy.to_dict() if hierarchy else None

        product['product_sets'] = self.product_sets.list_for_product(product_id)
        return product

    def create_product(self, name: str, description: str, brand_id: Optional[str] = None,
                       category_id: Optional[str] = None, image: Optional[ImageUpload] = None) -> Dict[str, Any]:
        """
        Register a product, then attach its image.

        The image is stored as ``<product_id>.<ext>`` and the row's image_url
        pointed at it. Should the upload or the update fail, the uploaded
        object and the product row are removed again before the error is
        raised, so no product is left behind without its image.
        """
        name = (name or '').strip()
        description = (description or '').strip()
        if not name:
            raise ValidationFailed("Product name is required")
        if not description:
            raise ValidationFailed("Product description is required")

        row = self.db.fetch_one(
            self.db.table(PRODUCTS_TABLE).insert({
                'name': name,
                'description': description,
                'brand_id': brand_id or None,
                'category_id': category_id or None,
            }),
            'creating product'
        )
        if row is None:
            raise StoreError("Failed creating product")
        product_id = row['product_id']
        logger.info(f"Created product {product_id}")

        if image is None:
            logger.info(f"Product {product_id} registered without an image")
            return row

        key = f"{product_id}.{image.extension(self.default_image_extension)}"
        uploaded = False
        try:
            image_path = self.db.upload_image(key, image.content, image.content_type)
            uploaded = True
            updated = self.db.fetch_one(
                self.db.table(PRODUCTS_TABLE).update({'image_url': image_path}).eq('product_id', product_id),
                f'attaching image to product {product_id}'
            )
        except StoreError:
            self._undo_registration(product_id, key if uploaded else None)
            raise

        return updated or {**row, 'image_url': image_path}

    def _undo_registration(self, product_id: str, image_key: Optional[str]) -> None:
        if image_key:
            try:
                self.db.remove_image(image_key)
            except StoreError:
                logger.error(f"Could not remove image {image_key} of failed product {product_id}")
        try:
            self.db.execute(
                self.db.table(PRODUCTS_TABLE).delete().eq('product_id', product_id),
                f'removing failed product {product_id}'
            )
            logger.warning(f"Removed product {product_id} after its image could not be attached")
        except StoreError:
            logger.error(f"Product {product_id} left without image after failed cleanup")

    def update_product(self, product_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        update_data = {key: fields[key] for key in EDITABLE_FIELDS if key in fields}
        if 'name' in update_data:
            update_data['name'] = (update_data['name'] or '').strip()
            if not update_data['name']:
                raise ValidationFailed("Product name is required")
        for key in ('brand_id', 'category_id'):
            if key in update_data:
                update_data[key] = update_data[key] or None
        if not update_data:
            raise ValidationFailed("Nothing to update")

        update_data['updated_at'] = datetime.now(timezone.utc).isoformat()
        row = self.db.fetch_one(
            self.db.table(PRODUCTS_TABLE).update(update_data).eq('product_id', product_id),
            f'updating product {product_id}'
        )
        if row is None:
            raise NotFoundError(f"Product {product_id} not found")
        return row

    def delete_product(self, product_id: str) -> None:
        rows = self.db.fetch_all(
            self.db.table(PRODUCTS_TABLE).delete().eq('product_id', product_id),
            f'deleting product {product_id}'
        )
        if not rows:
            raise NotFoundError(f"Product {product_id} not found")
        logger.info(f"Deleted product {product_id}")
