"""
Home Categories API
Versioned ordering of the categories shown on the home screen
"""

import logging

from flask import Blueprint, current_app, jsonify
from flask_cors import CORS

from .request_helpers import load_json
from .schemas import HomeCategorySaveSchema
from .services.home_category_versions import HomeCategoryVersionStore
from .services.supabase_auth import admin_required
from .services.supabase_database import get_supabase_db

logger = logging.getLogger(__name__)

home_categories_bp = Blueprint('home_categories', __name__)
CORS(home_categories_bp)


def _store():
    return HomeCategoryVersionStore(
        get_supabase_db(),
        hidden_order=current_app.config['HIDDEN_CATEGORY_ORDER'],
        version_limit=current_app.config['HOME_CATEGORY_VERSION_LIMIT'],
    )


@home_categories_bp.route('/home-categories', methods=['GET'])
@admin_required
def get_home_categories():
    """Current version plus the top-level categories available for selection"""
    store = _store()
    current = store.load_current()
    top_level = store.top_level_categories()
    return jsonify({
        'success': True,
        'version': current.to_dict() if current else None,
        'selected_category_ids': store.current_selection(),
        'top_level_categories': [node.to_dict() for node in top_level],
    })


@home_categories_bp.route('/home-categories', methods=['POST'])
@admin_required
def save_home_categories():
    data = load_json(HomeCategorySaveSchema())
    version = _store().save_version(data['category_ids'])
    return jsonify({'success': True, 'version': version.to_dict()}), 201


@home_categories_bp.route('/home-categories/versions', methods=['GET'])
@admin_required
def list_home_category_versions():
    versions = _store().list_versions()
    return jsonify({
        'success': True,
        'versions': [version.to_dict() for version in versions],
        'total': len(versions)
    })


@home_categories_bp.route('/home-categories/versions/<version_id>', methods=['GET'])
@admin_required
def get_home_category_version(version_id):
    version = _store().get_version(version_id)
    return jsonify({'success': True, 'version': version.to_dict()})


@home_categories_bp.route('/home-categories/versions/<version_id>/rollback', methods=['POST'])
@admin_required
def rollback_home_categories(version_id):
    version = _store().rollback(version_id)
    return jsonify({'success': True, 'version': version.to_dict()}), 201
