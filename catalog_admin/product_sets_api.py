"""
Product Sets API
Link registration, edits, MD pick and price history of product sets
"""

import logging

from flask import Blueprint, current_app, jsonify, request
from flask_cors import CORS

from .request_helpers import load_json, require_confirmation
from .schemas import (
    MdPickSchema, PriceRecordSchema, ProductSetRegistrationSchema, ProductSetUpdateSchema, ProductSetWithPriceSchema,
)
from .services.product_set_service import ProductSetService
from .services.supabase_auth import admin_required
from .services.supabase_database import get_supabase_db

logger = logging.getLogger(__name__)

product_sets_bp = Blueprint('product_sets', __name__)
CORS(product_sets_bp)


def _service():
    return ProductSetService(
        get_supabase_db(),
        trigger=current_app.extensions['crawl_trigger'],
        default_platform_id=current_app.config['DEFAULT_PLATFORM_ID'],
    )


@product_sets_bp.route('/product-sets', methods=['POST'])
@admin_required
def register_product_sets():
    """Register one product set per link and start the crawl"""
    data = load_json(ProductSetRegistrationSchema())
    result = _service().register_product_sets(data['product_id'], data['links'], data.get('platform_id'))
    return jsonify(result.to_dict()), 201


@product_sets_bp.route('/product-sets/with-price', methods=['POST'])
@admin_required
def create_product_set_with_price():
    """Create a single product set together with its first price row"""
    data = load_json(ProductSetWithPriceSchema())
    product_set = _service().create_product_set_with_price(**data)
    return jsonify({'success': True, 'product_set': product_set}), 201


@product_sets_bp.route('/product-sets/<product_set_id>', methods=['PUT'])
@admin_required
def update_product_set(product_set_id):
    data = load_json(ProductSetUpdateSchema())
    product_set = _service().update_product_set(product_set_id, data)
    return jsonify({'success': True, 'product_set': product_set})


@product_sets_bp.route('/product-sets/<product_set_id>', methods=['DELETE'])
@admin_required
def delete_product_set(product_set_id):
    require_confirmation()
    _service().delete_product_set(product_set_id)
    return jsonify({'success': True, 'message': f'Product set {product_set_id} deleted'})


@product_sets_bp.route('/product-sets/<product_set_id>/md-pick', methods=['PATCH'])
@admin_required
def set_md_pick(product_set_id):
    data = MdPickSchema().load(request.get_json(silent=True) or {})
    product_set = _service().set_md_pick(product_set_id, data.get('md_pick'))
    return jsonify({'success': True, 'product_set': product_set})


@product_sets_bp.route('/product-sets/md-pick/search', methods=['GET'])
@admin_required
def search_md_pick():
    results = _service().search_md_pick(request.args.get('q', ''))
    return jsonify({'success': True, 'results': results, 'total': len(results)})


@product_sets_bp.route('/product-sets/<product_set_id>/prices', methods=['GET'])
@admin_required
def get_price_history(product_set_id):
    prices = _service().price_history(product_set_id)
    return jsonify({'success': True, 'prices': prices})


@product_sets_bp.route('/product-sets/<product_set_id>/prices', methods=['POST'])
@admin_required
def record_price(product_set_id):
    data = load_json(PriceRecordSchema())
    price = _service().record_price(product_set_id, **data)
    return jsonify({'success': True, 'price': price}), 201
