"""
Auth API
Session endpoints for tokens issued by Supabase Auth
"""

import logging

from flask import Blueprint, g, jsonify
from flask_cors import CORS

from .request_helpers import get_cache_history, require_confirmation
from .services.supabase_auth import admin_required, get_current_user_email

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)
CORS(auth_bp)


@auth_bp.route('/auth/me', methods=['GET'])
@admin_required
def get_current_user():
    return jsonify({'success': True, 'user': g.current_user})


@auth_bp.route('/auth/sign-out', methods=['POST'])
@admin_required
def sign_out():
    """Drop the session state kept for the user; the token itself expires at the provider"""
    require_confirmation()
    get_cache_history().clear()
    logger.info(f"User signed out: {get_current_user_email()}")
    return jsonify({'success': True, 'message': 'Signed out'})
