"""
Trigger API
Starts the crawl workflow for a product
"""

import logging

from flask import Blueprint, current_app, jsonify
from flask_cors import CORS

from .request_helpers import load_json
from .schemas import TriggerSchema
from .services.supabase_auth import admin_required

logger = logging.getLogger(__name__)

trigger_bp = Blueprint('trigger', __name__)
CORS(trigger_bp)


@trigger_bp.route('/trigger', methods=['POST'])
@admin_required
def trigger_crawl():
    data = load_json(TriggerSchema())
    current_app.extensions['crawl_trigger'].trigger(data['product_id'])
    return jsonify({'success': True})
