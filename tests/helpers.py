"""Token helpers shared by the tests."""
from datetime import datetime, timedelta, timezone

import jwt

TEST_JWT_SECRET = 'test-jwt-secret'


def make_token(email='admin@grandeclip.com', email_verified=True, expires_in=timedelta(hours=1)):
    payload = {
        'sub': 'test-user-id',
        'email': email,
        'email_verified': email_verified,
        'role': 'authenticated',
        'exp': (datetime.now(timezone.utc) + expires_in).timestamp(),
    }
    return jwt.encode(payload, TEST_JWT_SECRET, algorithm='HS256')
