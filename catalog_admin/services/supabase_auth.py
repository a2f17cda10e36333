"""
Supabase Authentication Service

Sign-in happens at the identity provider; this module verifies the access
tokens it issues and restricts the API to verified organisation accounts.
"""

import logging
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict, Optional, Tuple

import jwt
from flask import current_app, g, request

from ..exceptions import AuthError, ForbiddenError

logger = logging.getLogger(__name__)


def is_allowed_email(email: Optional[str], domain: str) -> bool:
    return bool(email) and email.lower().endswith(domain.lower())


class SupabaseAuthService:
    """Verifies Supabase access tokens"""

    def __init__(self, jwt_secret: str, allowed_domain: str):
        if not jwt_secret:
            raise ValueError("Missing SUPABASE_JWT_SECRET")
        self.jwt_secret = jwt_secret
        self.allowed_domain = allowed_domain

    def verify_token(self, token: str) -> Tuple[bool, Optional[Dict[str, Any]]]:
        """
        Verify a JWT token from Supabase

        Args:
            token: JWT access token

        Returns:
            Tuple of (is_valid, user_data)
        """
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=["HS256"],
                options={"verify_aud": False}  # Supabase doesn't use audience
            )
        except jwt.InvalidTokenError as e:
            logger.warning(f"Token verification error: {str(e)}")
            return False, None

        exp = payload.get('exp')
        if exp is not None and datetime.now(timezone.utc).timestamp() > exp:
            return False, None

        user_metadata = payload.get('user_metadata') or {}
        user_data = {
            "id": payload.get('sub'),
            "email": payload.get('email'),
            "email_verified": bool(payload.get('email_verified', user_metadata.get('email_verified', False))),
            "role": payload.get('role'),
            "user_metadata": user_metadata,
        }
        return True, user_data

    def authorize(self, user: Dict[str, Any]) -> None:
        """Only verified addresses of the allowed domain may use the dashboard."""
        if not user.get('email_verified'):
            raise ForbiddenError("Email address is not verified")
        if not is_allowed_email(user.get('email'), self.allowed_domain):
            logger.warning(f"Rejected sign-in from {user.get('email')}")
            raise ForbiddenError()


def init_auth(app) -> SupabaseAuthService:
    service = SupabaseAuthService(
        jwt_secret=app.config.get('SUPABASE_JWT_SECRET'),
        allowed_domain=app.config.get('ALLOWED_EMAIL_DOMAIN', ''),
    )
    app.extensions['supabase_auth'] = service
    return service


def admin_required(f):
    """
    Decorator to require a valid token of an allowed account

    Usage:
        @bp.route('/protected')
        @admin_required
        def protected_route():
            email = get_current_user_email()
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get('Authorization', '')
        if not auth_header.startswith('Bearer '):
            raise AuthError()

        token = auth_header.split(' ', 1)[1]
        auth_service = current_app.extensions['supabase_auth']
        is_valid, user_data = auth_service.verify_token(token)
        if not is_valid or not user_data:
            raise AuthError("Invalid or expired token")

        auth_service.authorize(user_data)

        g.current_user = user_data
        g.access_token = token
        return f(*args, **kwargs)

    return decorated_function


def get_current_user_email() -> Optional[str]:
    """
    Get the current user's email from the request context

    Returns:
        User email if authenticated, None otherwise
    """
    user = g.get('current_user')
    return user.get('email') if user else None
