"""Brand lookups and registration."""

import logging
from typing import Any, Dict, List

from ..exceptions import ConflictError, ValidationFailed

logger = logging.getLogger(__name__)

BRANDS_TABLE = 'brands'


class BrandService:

    def __init__(self, db):
        self.db = db

    def list_brands(self) -> List[Dict[str, Any]]:
        """All brands with a non-empty name, ordered by name"""
        return self.db.fetch_all(
            self.db.table(BRANDS_TABLE).select('*').neq('name', '').order('name'),
            'fetching brands'
        )

    def search_brands(self, term: str) -> List[Dict[str, Any]]:
        term = (term or '').strip()
        if not term:
            return []
        return self.db.fetch_all(
            self.db.table(BRANDS_TABLE).select('brand_id, name').ilike('name', f'%{term}%').order('name'),
            'searching brands'
        )

    def brand_names(self) -> Dict[str, str]:
        rows = self.db.fetch_all(
            self.db.table(BRANDS_TABLE).select('brand_id, name'),
            'fetching brand names'
        )
        return {row['brand_id']: row['name'] for row in rows}

    def create_brand(self, name: str) -> Dict[str, Any]:
        name = (name or '').strip()
        if not name:
            raise ValidationFailed("Brand name is required")
        try:
            row = self.db.fetch_one(self.db.table(BRANDS_TABLE).insert({'name': name}), 'creating brand')
        except ConflictError as e:
            raise ConflictError(f"Brand '{name}' already exists") from e
        logger.info(f"Registered brand {name!r}")
        return row
