"""Tests for the crawl workflow dispatch."""
from unittest.mock import Mock, patch

import pytest
import requests

from catalog_admin.exceptions import TriggerError
from catalog_admin.services.crawl_trigger import CrawlTrigger

DISPATCH_URL = 'https://api.github.com/repos/acme/shop/actions/workflows/crawl.yml/dispatches'


@pytest.fixture
def trigger():
    return CrawlTrigger(DISPATCH_URL, 'secret-token', timeout=5)


@patch('catalog_admin.services.crawl_trigger.requests.post')
def test_dispatch_request(mock_post, trigger):
    mock_post.return_value = Mock(ok=True, status_code=204)

    trigger.trigger('p1')

    mock_post.assert_called_once()
    args, kwargs = mock_post.call_args
    assert args[0] == DISPATCH_URL
    assert kwargs['json'] == {'ref': 'main', 'inputs': {'productId': 'p1'}}
    assert kwargs['headers']['Authorization'] == 'Bearer secret-token'
    assert kwargs['headers']['Accept'] == 'application/vnd.github+json'
    assert kwargs['timeout'] == 5


@patch('catalog_admin.services.crawl_trigger.requests.post')
def test_rejected_dispatch(mock_post, trigger):
    mock_post.return_value = Mock(ok=False, status_code=401, text='Bad credentials')

    with pytest.raises(TriggerError) as exc_info:
        trigger.trigger('p1')
    assert exc_info.value.details == {'status_code': 401}


@patch('catalog_admin.services.crawl_trigger.requests.post')
def test_network_error(mock_post, trigger):
    mock_post.side_effect = requests.exceptions.ConnectionError('down')

    with pytest.raises(TriggerError):
        trigger.trigger('p1')


@patch('catalog_admin.services.crawl_trigger.requests.post')
def test_missing_token(mock_post):
    with pytest.raises(TriggerError):
        CrawlTrigger(DISPATCH_URL, None).trigger('p1')
    mock_post.assert_not_called()
