"""
Cache API
Proxies cache invalidation to the storefront and keeps each user's history
"""

import logging

from flask import Blueprint, current_app, jsonify, request
from flask_cors import CORS

from .exceptions import CacheProxyError
from .request_helpers import get_cache_history
from .schemas import CacheRequestSchema
from .services.cache_history import CacheAction
from .services.cache_proxy import usage
from .services.category_service import CategoryService
from .services.supabase_auth import admin_required
from .services.supabase_database import get_supabase_db

logger = logging.getLogger(__name__)

cache_bp = Blueprint('cache', __name__)
CORS(cache_bp)


def _category_name(category_id):
    if not category_id:
        return None
    node = CategoryService(get_supabase_db()).load_tree().get(category_id)
    return node.name if node else None


@cache_bp.route('/cache', methods=['GET'])
def cache_usage():
    """Usage document of the proxy"""
    return jsonify(usage(current_app.config['CACHE_PROXY_TARGET']))


@cache_bp.route('/cache', methods=['POST'])
@admin_required
def invalidate_cache():
    args = CacheRequestSchema().load(request.args)
    cache_type, category_id, path = args['type'], args.get('category_id'), args.get('path')
    history = get_cache_history()
    category_name = _category_name(category_id) if cache_type == 'category-products' else None

    try:
        result = current_app.extensions['cache_proxy'].invalidate(cache_type, category_id, path)
    except CacheProxyError as e:
        history.record(CacheAction(
            type=cache_type, status='error', message=e.message,
            categoryId=category_id, categoryName=category_name, path=path,
        ))
        raise

    history.record(CacheAction(
        type=cache_type, status='success', message=result['message'],
        categoryId=category_id, categoryName=category_name, path=path,
    ))
    return jsonify(result)


@cache_bp.route('/cache/history', methods=['GET'])
@admin_required
def cache_history():
    return jsonify({'success': True, 'history': get_cache_history().list()})
