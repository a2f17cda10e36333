"""Dispatch of the crawl workflow that fetches data for new product sets."""

import logging
from typing import Optional

import requests

from ..exceptions import TriggerError

logger = logging.getLogger(__name__)


class CrawlTrigger:
    """Starts the crawl workflow through the GitHub workflow-dispatch API."""

    def __init__(self, url: str, token: Optional[str], ref: str = 'main', timeout: int = 30):
        self.url = url
        self.token = token
        self.ref = ref
        self.timeout = timeout

    def trigger(self, product_id: str) -> None:
        """
        Request a crawl run for ``product_id``.

        Raises:
            TriggerError: the dispatch was rejected or could not be sent
        """
        if not self.token:
            raise TriggerError("Crawl trigger is not configured")

        headers = {
            'Accept': 'application/vnd.github+json',
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {self.token}',
        }
        payload = {'ref': self.ref, 'inputs': {'productId': product_id}}

        try:
            response = requests.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Crawl trigger request for {product_id} failed: {e}")
            raise TriggerError() from e

        if not response.ok:
            logger.error(f"Crawl trigger for {product_id} rejected: {response.status_code} {response.text}")
            raise TriggerError(details={'status_code': response.status_code})

        logger.info(f"Crawl workflow dispatched for product {product_id}")
