"""
Cache invalidation proxy.

Forwards invalidation requests to the storefront's cache endpoint, which the
browser cannot call directly.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests

from ..exceptions import CacheProxyError, ValidationFailed

logger = logging.getLogger(__name__)

CACHE_TYPES = ('categories', 'products', 'category-products', 'all', 'path')


def usage(target: str) -> Dict[str, Any]:
    """Static description of the proxy served on GET"""
    return {
        'message': 'Cache invalidation proxy API',
        'target': target,
        'usage': {
            'Invalidate all category caches': 'POST /api/cache?type=categories',
            'Invalidate all product caches': 'POST /api/cache?type=products',
            'Invalidate one category': 'POST /api/cache?type=category-products&categoryId=1',
            'Invalidate everything': 'POST /api/cache?type=all',
            'Invalidate one path': 'POST /api/cache?type=path&path=/api/products',
        },
        'note': f'Requests are proxied to {target}',
    }


def validate_request(cache_type: Optional[str], category_id: Optional[str] = None,
                     path: Optional[str] = None) -> None:
    if cache_type not in CACHE_TYPES:
        raise ValidationFailed(f"type must be one of: {', '.join(CACHE_TYPES)}")
    if cache_type == 'category-products' and not category_id:
        raise ValidationFailed("categoryId is required for type category-products")
    if cache_type == 'path' and not path:
        raise ValidationFailed("path is required for type path")


class CacheProxy:

    def __init__(self, target: str, timeout: int = 30):
        self.target = target
        self.timeout = timeout

    def invalidate(self, cache_type: str, category_id: Optional[str] = None,
                   path: Optional[str] = None) -> Dict[str, Any]:
        """
        Forward one invalidation request.

        Returns the upstream body extended with ``success``, ``message``,
        ``timestamp`` and ``proxied``. An upstream error status is raised as
        CacheProxyError carrying the same status code.
        """
        validate_request(cache_type, category_id, path)

        params = {'type': cache_type}
        if category_id:
            params['categoryId'] = category_id
        if path:
            params['path'] = path

        logger.info(f"Proxying cache request to {self.target} with {params}")
        try:
            response = requests.post(self.target, params=params,
                                     headers={'Content-Type': 'application/json'},
                                     timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Proxy cache invalidation error: {e}")
            raise CacheProxyError(status_code=500, details={'details': str(e)}) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.ok:
            logger.error(f"Cache invalidation failed ({response.status_code}): {data}")
            raise CacheProxyError(data.get('error') or 'Failed to invalidate cache',
                                  status_code=response.status_code)

        logger.info(f"Cache invalidation successful: {data}")
        return {
            **data,
            'success': True,
            'message': data.get('message') or f'Cache invalidated for type: {cache_type}',
            'timestamp': data.get('timestamp') or datetime.now(timezone.utc).isoformat(),
            'proxied': True,
        }
