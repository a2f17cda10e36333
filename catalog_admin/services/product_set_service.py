"""
Product set service.

Product sets map a product to a listing on an external platform. Covers link
registration (with the follow-up crawl trigger), edits, the MD pick flag and
the append-only price history of each set.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from ..exceptions import NotFoundError, StoreError, TriggerError, ValidationFailed
from ..formatters import format_currency, format_price
from .link_parser import parse_links

logger = logging.getLogger(__name__)

PRODUCTS_TABLE = 'products'
PRODUCT_SETS_TABLE = 'product_sets'
PRICE_HISTORIES_TABLE = 'product_price_histories'

PRODUCT_SET_COLUMNS = ('product_set_id, product_id, platform_id, product_name, normalized_product_name, '
                       'link_url, label, thumbnail, md_pick, created_at, platforms:platform_id(name)')
PRICE_COLUMNS = 'product_set_id, original_price, discount_price, shipping_fee, recorded_at'
EDITABLE_FIELDS = ('product_name', 'normalized_product_name', 'link_url', 'label', 'thumbnail',
                   'platform_id', 'md_pick')


@dataclass
class RegistrationResult:
    product_id: str
    inserted: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, str]] = field(default_factory=list)
    triggered: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': True,
            'product_id': self.product_id,
            'inserted': len(self.inserted),
            'failed': self.failed,
            'product_sets': self.inserted,
            'triggered': self.triggered,
        }


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _check_prices(original_price, discount_price, shipping_fee) -> None:
    if original_price is None or original_price < 0:
        raise ValidationFailed("original_price must be zero or greater")
    if discount_price is not None and discount_price < 0:
        raise ValidationFailed("discount_price must be zero or greater")
    if shipping_fee is None or shipping_fee < 0:
        raise ValidationFailed("shipping_fee must be zero or greater")


def _platform_name(row: Dict[str, Any]) -> str:
    platform = row.get('platforms')
    if isinstance(platform, list):
        platform = platform[0] if platform else None
    return (platform or {}).get('name') or ''


class ProductSetService:
    """Service for product set and price history operations."""

    def __init__(self, db, trigger=None, default_platform_id: Optional[str] = None):
        self.db = db
        self.trigger = trigger
        self.default_platform_id = default_platform_id

    def _require_product(self, product_id: str) -> None:
        row = self.db.fetch_one(
            self.db.table(PRODUCTS_TABLE).select('product_id').eq('product_id', product_id).limit(1),
            f'checking product {product_id}'
        )
        if row is None:
            raise NotFoundError(f"Product {product_id} not found")

    def _require_product_set(self, product_set_id: str) -> Dict[str, Any]:
        row = self.db.fetch_one(
            self.db.table(PRODUCT_SETS_TABLE).select('product_set_id, md_pick')
                .eq('product_set_id', product_set_id).limit(1),
            f'fetching product set {product_set_id}'
        )
        if row is None:
            raise NotFoundError(f"Product set {product_set_id} not found")
        return row

    def register_product_sets(self, product_id: str, raw_links: Union[str, Iterable[str]],
                              platform_id: Optional[str] = None) -> RegistrationResult:
        """
        Register one product set per link and ask the crawler to pick them up.

        Links failing to insert are logged and skipped. The crawl trigger is
        fired once after all inserts, whether or not any of them succeeded; its
        failure is reported through ``triggered`` rather than raised.
        """
        if not isinstance(raw_links, str):
            raw_links = ','.join(raw_links)
        links = parse_links(raw_links)
        if not links:
            raise ValidationFailed("At least one link is required")

        self._require_product(product_id)

        result = RegistrationResult(product_id=product_id)
        platform_id = platform_id or self.default_platform_id
        for link in links:
            try:
                row = self.db.fetch_one(
                    self.db.table(PRODUCT_SETS_TABLE).insert({
                        'product_id': product_id,
                        'link_url': link,
                        'platform_id': platform_id,
                    }),
                    f'inserting product set for {link}'
                )
            except StoreError as e:
                logger.warning(f"Skipping link {link} of product {product_id}: {e.message}")
                result.failed.append({'link_url': link, 'error': e.message})
                continue
            result.inserted.append(row)

        logger.info(f"Registered {len(result.inserted)}/{len(links)} product sets for product {product_id}")

        if self.trigger is not None:
            try:
                self.trigger.trigger(product_id)
                result.triggered = True
            except TriggerError as e:
                logger.error(f"Crawl trigger for product {product_id} failed: {e.message}")
        return result

    def list_for_product(self, product_id: str) -> List[Dict[str, Any]]:
        """Product sets of a product with platform name and latest price"""
        rows = self.db.fetch_all(
            self.db.table(PRODUCT_SETS_TABLE).select(PRODUCT_SET_COLUMNS)
                .eq('product_id', product_id)
                .order('created_at', desc=True),
            f'fetching product sets of {product_id}'
        )
        prices = self.latest_prices([row['product_set_id'] for row in rows])
        product_sets = []
        for row in rows:
            item = {key: value for key, value in row.items() if key != 'platforms'}
            item['platform_name'] = _platform_name(row)
            item['latest_price'] = prices.get(row['product_set_id'])
            product_sets.append(item)
        return product_sets

    def update_product_set(self, product_set_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        update_data = {key: fields[key] for key in EDITABLE_FIELDS if key in fields}
        if 'label' in update_data:
            update_data['label'] = update_data['label'] or None
        if not update_data:
            raise ValidationFailed("Nothing to update")

        row = self.db.fetch_one(
            self.db.table(PRODUCT_SETS_TABLE).update(update_data).eq('product_set_id', product_set_id),
            f'updating product set {product_set_id}'
        )
        if row is None:
            raise NotFoundError(f"Product set {product_set_id} not found")
        return row

    def delete_product_set(self, product_set_id: str) -> None:
        rows = self.db.fetch_all(
            self.db.table(PRODUCT_SETS_TABLE).delete().eq('product_set_id', product_set_id),
            f'deleting product set {product_set_id}'
        )
        if not rows:
            raise NotFoundError(f"Product set {product_set_id} not found")
        logger.info(f"Deleted product set {product_set_id}")

    def set_md_pick(self, product_set_id: str, value: Optional[bool] = None) -> Dict[str, Any]:
        """Set the MD pick flag, or flip it when ``value`` is None."""
        if value is None:
            current = self._require_product_set(product_set_id)
            value = not current.get('md_pick', False)

        row = self.db.fetch_one(
            self.db.table(PRODUCT_SETS_TABLE).update({'md_pick': value}).eq('product_set_id', product_set_id),
            f'updating md pick of {product_set_id}'
        )
        if row is None:
            raise NotFoundError(f"Product set {product_set_id} not found")
        logger.info(f"MD pick of product set {product_set_id} set to {value}")
        return row

    def search_md_pick(self, term: str) -> List[Dict[str, Any]]:
        """
        Product sets of products matching ``term`` by id or name.

        Each result carries its platform name and latest price; results are
        ordered by product name, then product set name.
        """
        term = (term or '').strip()
        if not term:
            return []

        products_query = self.db.table(PRODUCTS_TABLE).select('product_id, name')
        if _is_uuid(term):
            products_query = products_query.or_(f'product_id.eq.{term},name.ilike.*{term}*')
        else:
            products_query = products_query.ilike('name', f'%{term}%')
        products = self.db.fetch_all(products_query, 'searching products for md pick')
        if not products:
            return []
        product_names = {p['product_id']: p.get('name') or '' for p in products}

        product_sets = self.db.fetch_all(
            self.db.table(PRODUCT_SETS_TABLE)
                .select('product_set_id, product_id, product_name, md_pick, link_url, platforms:platform_id(name)')
                .in_('product_id', list(product_names))
                .order('product_name'),
            'fetching product sets for md pick'
        )
        prices = self.latest_prices([ps['product_set_id'] for ps in product_sets])

        results = []
        for ps in product_sets:
            price = prices.get(ps['product_set_id']) or {}
            original_price = price.get('original_price') or 0
            discount_price = price.get('discount_price')
            shipping_fee = price.get('shipping_fee') or 0
            results.append({
                'product_id': ps['product_id'],
                'product_name': product_names.get(ps['product_id'], ''),
                'product_set_id': ps['product_set_id'],
                'product_set_name': ps.get('product_name') or '',
                'md_pick': bool(ps.get('md_pick')),
                'link_url': ps.get('link_url') or '',
                'platform_name': _platform_name(ps),
                'original_price': original_price,
                'discount_price': discount_price,
                'shipping_fee': shipping_fee,
                'original_price_display': format_currency(original_price),
                'discount_price_display': format_price(discount_price),
                'shipping_fee_display': format_currency(shipping_fee),
            })

        results.sort(key=lambda r: (r['product_name'].casefold(), r['product_set_name'].casefold()))
        return results

    # Price history

    def latest_prices(self, product_set_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """Most recent price row per product set"""
        if not product_set_ids:
            return {}
        rows = self.db.fetch_all(
            self.db.table(PRICE_HISTORIES_TABLE).select(PRICE_COLUMNS)
                .in_('product_set_id', product_set_ids)
                .order('recorded_at', desc=True),
            'fetching latest prices'
        )
        latest: Dict[str, Dict[str, Any]] = {}
        for row in rows:
            latest.setdefault(row['product_set_id'], row)
        return latest

    def price_history(self, product_set_id: str) -> List[Dict[str, Any]]:
        self._require_product_set(product_set_id)
        return self.db.fetch_all(
            self.db.table(PRICE_HISTORIES_TABLE).select('*')
                .eq('product_set_id', product_set_id)
                .order('recorded_at', desc=True),
            f'fetching price history of {product_set_id}'
        )

    def record_price(self, product_set_id: str, original_price: Union[int, float],
                     discount_price: Optional[Union[int, float]] = None,
                     shipping_fee: Union[int, float] = 0,
                     metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Append a price observation; existing rows are never changed."""
        _check_prices(original_price, discount_price, shipping_fee)

        self._require_product_set(product_set_id)
        row_data = {
            'product_set_id': product_set_id,
            'original_price': original_price,
            'discount_price': discount_price,
            'shipping_fee': shipping_fee,
        }
        if metadata:
            row_data['price_metadata'] = metadata
        return self.db.fetch_one(
            self.db.table(PRICE_HISTORIES_TABLE).insert(row_data),
            f'recording price of {product_set_id}'
        )

    def create_product_set_with_price(self, product_id: str, link_url: str,
                                      original_price: Union[int, float],
                                      discount_price: Optional[Union[int, float]] = None,
                                      shipping_fee: Union[int, float] = 0,
                                      platform_id: Optional[str] = None,
                                      product_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a product set together with its first price row.

        When the price row cannot be written the new product set is deleted
        again and the error re-raised.
        """
        link_url = (link_url or '').strip()
        if not link_url:
            raise ValidationFailed("link_url is required")
        _check_prices(original_price, discount_price, shipping_fee)
        self._require_product(product_id)

        product_set = self.db.fetch_one(
            self.db.table(PRODUCT_SETS_TABLE).insert({
                'product_id': product_id,
                'link_url': link_url,
                'platform_id': platform_id or self.default_platform_id,
                'product_name': product_name,
            }),
            f'creating product set for {product_id}'
        )
        product_set_id = product_set['product_set_id']

        try:
            price = self.record_price(product_set_id, original_price, discount_price, shipping_fee)
        except StoreError:
            try:
                self.db.execute(
                    self.db.table(PRODUCT_SETS_TABLE).delete().eq('product_set_id', product_set_id),
                    f'removing product set {product_set_id}'
                )
            except StoreError:
                logger.error(f"Product set {product_set_id} left without a price after failed cleanup")
            raise

        return {**product_set, 'latest_price': price}
