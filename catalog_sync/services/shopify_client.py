"""
Shopify Admin GraphQL client.

One instance is created per import run and passed to the pager; nothing here
is cached at module level.
"""

import logging
import time
from typing import Dict, Any, Optional

import requests

from ..config import Config
from ..exceptions import ConfigurationError, ShopifyApiError

logger = logging.getLogger(__name__)


def normalize_shop_url(shop_url: str) -> str:
    """Normalize a shop domain to https://{shop}.myshopify.com without a trailing slash."""
    shop_url = shop_url.strip().rstrip('/')

    if not shop_url.startswith('https://'):
        shop_url = f"https://{shop_url.replace('http://', '')}"

    if '.myshopify.com' not in shop_url:
        logger.error(f"Invalid shop URL format: {shop_url} - must include .myshopify.com")
        shop_url += '.myshopify.com'

    return shop_url


class ShopifyGraphQLClient:
    """Client for the Shopify Admin GraphQL API with throttle-aware retries."""

    def __init__(self, shop_url: str, access_token: str, api_version: str = "2024-10",
                 session: Optional[requests.Session] = None, timeout: int = 30,
                 max_retries: int = 3):
        if not shop_url or not access_token:
            raise ConfigurationError("Shopify credentials not configured")

        self.shop_url = normalize_shop_url(shop_url)
        self.access_token = access_token
        self.api_version = api_version
        self.timeout = timeout
        self.max_retries = max_retries
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config=Config, session: Optional[requests.Session] = None) -> 'ShopifyGraphQLClient':
        """Build a client from configuration, raising ConfigurationError when credentials are missing."""
        return cls(
            shop_url=config.SHOPIFY_SHOP_URL,
            access_token=config.SHOPIFY_ACCESS_TOKEN,
            api_version=config.SHOPIFY_API_VERSION,
            session=session,
            timeout=config.HTTP_TIMEOUT,
            max_retries=config.SHOPIFY_MAX_RETRIES,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.shop_url}/admin/api/{self.api_version}/graphql.json"

    def query(self, query: str, variables: Optional[dict] = None) -> Dict[str, Any]:
        """
        Run a GraphQL query and return its data payload.

        Raises:
            ShopifyApiError: the request failed after retries or returned GraphQL errors
        """
        result = self._make_graphql_request(query, variables)
        if not result['success']:
            raise ShopifyApiError(
                result['error'],
                status_code=result.get('status_code'),
                details=result.get('error_details'),
            )
        return result['data']

    def _make_graphql_request(self, query: str, variables: dict = None, retry_count: int = 0) -> Dict[str, Any]:
        """
        Make a GraphQL request to the Shopify Admin API with exponential backoff for rate limiting.

        Args:
            query: GraphQL query string
            variables: Query variables
            retry_count: Current retry attempt (for internal use)

        Returns:
            Response data or error information
        """
        headers = {
            'X-Shopify-Access-Token': self.access_token,
            'Content-Type': 'application/json'
        }

        request_data = {
            'query': query,
            'variables': variables or {}
        }

        try:
            response = self.session.post(self.endpoint, headers=headers, json=request_data, timeout=self.timeout)
        except requests.RequestException as e:
            return {
                'success': False,
                'error': f'Shopify request failed: {e}',
                'error_code': 'NETWORK_ERROR'
            }

        if response.status_code == 200:
            try:
                data = response.json()
            except ValueError as e:
                return {
                    'success': False,
                    'error': f'Invalid JSON in Shopify response: {e}',
                    'error_code': 'INVALID_RESPONSE',
                    'status_code': response.status_code
                }
            if not isinstance(data, dict):
                return {
                    'success': False,
                    'error': 'Unexpected Shopify response body',
                    'error_code': 'INVALID_RESPONSE',
                    'status_code': response.status_code
                }
            if 'errors' in data:
                errors = data.get('errors', [])
                is_throttled = any(
                    err.get('extensions', {}).get('code') == 'THROTTLED'
                    for err in errors if isinstance(err, dict)
                )

                if is_throttled and retry_count < self.max_retries:
                    # Exponential backoff: 2^retry_count seconds (2s, 4s, 8s)
                    wait_time = 2 ** (retry_count + 1)
                    logger.warning(f"GraphQL rate limited, waiting {wait_time} seconds before retry {retry_count + 1}/{self.max_retries}")
                    time.sleep(wait_time)
                    return self._make_graphql_request(query, variables, retry_count + 1)

                return {
                    'success': False,
                    'error': f"GraphQL errors: {errors}",
                    'error_code': 'THROTTLED' if is_throttled else 'GRAPHQL_ERROR',
                    'error_details': errors
                }
            return {
                'success': True,
                'data': data.get('data') or {},
                'status_code': response.status_code,
                'extensions': data.get('extensions', {})
            }

        if response.status_code == 429:
            if retry_count < self.max_retries:
                try:
                    retry_after = float(response.headers.get('Retry-After', 2))
                except ValueError:
                    retry_after = 2.0
                logger.warning(f"HTTP 429 rate limit, waiting {retry_after} seconds before retry {retry_count + 1}/{self.max_retries}")
                time.sleep(retry_after)
                return self._make_graphql_request(query, variables, retry_count + 1)

            return {
                'success': False,
                'error': 'Rate limited',
                'error_code': 'RATE_LIMITED',
                'status_code': response.status_code
            }

        return {
            'success': False,
            'error': f'API request failed: {response.status_code} {response.text[:500]}',
            'error_code': 'API_ERROR',
            'status_code': response.status_code
        }
