"""Helpers shared by the API blueprints."""
from flask import current_app, request

from .exceptions import ConfirmationRequired, ValidationFailed
from .services.cache_history import CacheActionHistory
from .services.supabase_auth import get_current_user_email


def require_confirmation():
    """Destructive endpoints only act on an explicit ``confirm=true``."""
    if request.args.get('confirm', '').lower() != 'true':
        raise ConfirmationRequired()


def load_json(schema):
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationFailed("Request body must be JSON")
    return schema.load(data)


def get_cache_history() -> CacheActionHistory:
    """Cache action history of the signed-in user"""
    return CacheActionHistory(
        current_app.extensions['redis'],
        owner=get_current_user_email(),
        limit=current_app.config['CACHE_HISTORY_LIMIT'],
    )
