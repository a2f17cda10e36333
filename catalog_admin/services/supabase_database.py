"""
Supabase Database Service

Thin wrapper around the Supabase client SDK. Query builders are assembled by
the calling service; this module executes them and turns PostgREST and
transport failures into the application's error taxonomy.
"""

import logging
from typing import Optional, Dict, Any, List

from flask import current_app
from postgrest.exceptions import APIError
from supabase import create_client, Client

from ..exceptions import ConflictError, StoreError, StorageError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = '23505'


class SupabaseDatabaseService:
    """Manages database and storage operations using Supabase client SDK"""

    def __init__(self, client: Optional[Client] = None, url: Optional[str] = None,
                 key: Optional[str] = None, image_bucket: str = 'products'):
        """Initialize Supabase database client"""
        if client is None:
            if not all([url, key]):
                raise ValueError("Missing required Supabase configuration")
            client = create_client(url, key)
            logger.info(f"Supabase database service initialized for {url}")

        self.client = client
        self.supabase_url = url
        self.image_bucket = image_bucket

    def table(self, name: str):
        """Start a query against ``name``."""
        return self.client.table(name)

    def execute(self, query, action: str):
        """
        Execute a query builder.

        Args:
            query: PostgREST request builder
            action: Short description used in logs and error messages

        Raises:
            ConflictError: the store reported a unique violation
            StoreError: any other store or network failure
        """
        try:
            return query.execute()
        except APIError as e:
            logger.error(f"Error {action}: {e.message} (code={e.code})")
            if e.code == UNIQUE_VIOLATION:
                raise ConflictError(details={'code': e.code}) from e
            raise StoreError(f"Failed {action}", details={'code': e.code}) from e
        except Exception as e:
            logger.error(f"Error {action}: {e}")
            raise StoreError(f"Failed {action}") from e

    def fetch_all(self, query, action: str) -> List[Dict[str, Any]]:
        result = self.execute(query, action)
        return result.data or []

    def fetch_one(self, query, action: str) -> Optional[Dict[str, Any]]:
        """First row of the result, or None"""
        rows = self.fetch_all(query, action)
        return rows[0] if rows else None

    def count(self, query, action: str) -> int:
        result = self.execute(query, action)
        return result.count or 0

    def upload_image(self, key: str, content: bytes, content_type: str) -> str:
        """Upload an image to the product bucket and return its storage path"""
        try:
            self.client.storage.from_(self.image_bucket).upload(
                key, content, {'content-type': content_type}
            )
        except Exception as e:
            logger.error(f"Error uploading image {key}: {e}")
            raise StorageError(details={'key': key}) from e
        return f"{self.image_bucket}/{key}"

    def remove_image(self, key: str) -> None:
        try:
            self.client.storage.from_(self.image_bucket).remove([key])
        except Exception as e:
            logger.error(f"Error removing image {key}: {e}")
            raise StorageError(details={'key': key}) from e

    def health_check(self) -> Dict[str, Any]:
        """
        Perform a health check on the Supabase database connection

        Returns:
            Dict with health status information
        """
        try:
            self.client.table('product_categories').select('id').limit(1).execute()
            return {
                "status": "healthy",
                "connection": "active",
                "query_test": "passed",
                "url": self.supabase_url
            }
        except Exception as e:
            logger.error(f"Supabase health check failed: {e}")
            return {
                "status": "unhealthy",
                "connection": "failed",
                "error": str(e),
                "url": self.supabase_url
            }


def init_supabase_db(app, client: Optional[Client] = None) -> SupabaseDatabaseService:
    """Create the database service for ``app``"""
    service = SupabaseDatabaseService(
        client=client,
        url=app.config.get('SUPABASE_URL'),
        key=app.config.get('SUPABASE_SERVICE_ROLE_KEY') or app.config.get('SUPABASE_ANON_KEY'),
        image_bucket=app.config.get('PRODUCT_IMAGE_BUCKET', 'products'),
    )
    app.extensions['supabase_db'] = service
    return service


def get_supabase_db() -> SupabaseDatabaseService:
    """Get the database service of the current application"""
    return current_app.extensions['supabase_db']
