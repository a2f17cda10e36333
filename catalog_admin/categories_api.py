"""
Categories API
Category listing, hierarchy lookups, CRUD and bulk product assignment
"""

import logging

from flask import Blueprint, jsonify, request
from flask_cors import CORS

from .request_helpers import load_json, require_confirmation
from .schemas import BulkAssignCategorySchema, CategoryCreateSchema, CategoryUpdateSchema
from .services.category_service import CategoryService
from .services.supabase_auth import admin_required
from .services.supabase_database import get_supabase_db

logger = logging.getLogger(__name__)

categories_bp = Blueprint('categories', __name__)
CORS(categories_bp)


def _service():
    return CategoryService(get_supabase_db())


@categories_bp.route('/categories', methods=['GET'])
@admin_required
def get_categories():
    """All categories; ``view=tree`` gives the indented listing, ``q`` a name search"""
    query = request.args.get('q', '')
    service = _service()
    if query.strip() or request.args.get('view') == 'tree':
        categories = service.get_tree(query)
    else:
        categories = service.list_categories()

    return jsonify({
        'success': True,
        'categories': categories,
        'total': len(categories)
    })


@categories_bp.route('/categories/<category_id>/hierarchy', methods=['GET'])
@admin_required
def get_category_hierarchy(category_id):
    hierarchy = _service().get_hierarchy(category_id)
    return jsonify({'success': True, 'hierarchy': hierarchy.to_dict()})


@categories_bp.route('/categories', methods=['POST'])
@admin_required
def create_category():
    data = load_json(CategoryCreateSchema())
    category = _service().create_category(data['name'], data.get('parent_id'))
    return jsonify({'success': True, 'category': category}), 201


@categories_bp.route('/categories/<category_id>', methods=['PUT'])
@admin_required
def update_category(category_id):
    data = load_json(CategoryUpdateSchema())
    category = _service().update_category(category_id, **data)
    return jsonify({'success': True, 'category': category})


@categories_bp.route('/categories/<category_id>', methods=['DELETE'])
@admin_required
def delete_category(category_id):
    require_confirmation()
    _service().delete_category(category_id)
    return jsonify({'success': True, 'message': f'Category {category_id} deleted'})


@categories_bp.route('/categories/bulk-assign', methods=['POST'])
@admin_required
def bulk_assign_category():
    """Update category for multiple products."""
    data = load_json(BulkAssignCategorySchema())
    updated_count = _service().bulk_update_product_category(data['product_ids'], data['category_id'])
    return jsonify({
        'success': True,
        'message': f'Updated category for {updated_count} products',
        'updated_count': updated_count
    })
