"""WordPress REST Client

Thin requests-based client for the WordPress REST API with:
- Token bucket rate limiting
- Application password or bearer token authentication
- Standardized error handling
"""

import logging
from typing import Optional, Any, Dict, List, Tuple

import requests

from .utils.rate_limit import RateLimiter
from .utils.errors import handle_http_error, StoreError, TransientStoreError

logger = logging.getLogger(__name__)


class WordPressClient:
    """WordPress REST API client used by the REST content store.

    Either ``credentials`` (username, application password) or
    ``bearer_token`` must be given.
    """

    API_PREFIX = "/wp-json/wp/v2"
    PAGE_SIZE = 100

    def __init__(
        self,
        host_domain: str,
        credentials: Optional[Tuple[str, str]] = None,
        bearer_token: Optional[str] = None,
        requests_per_second: float = 5.0,
        verify_ssl: bool = True,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        """Initialize WordPress client.

        Args:
            host_domain: Site URL (e.g., https://cms.example.com)
            credentials: Tuple of (username, application_password)
            bearer_token: Pre-existing bearer token (JWT/OAuth plugins)
            requests_per_second: Rate limit (default: 5.0 req/sec)
            verify_ssl: Whether to verify SSL certificates (default: True)
            timeout: Per-request timeout in seconds
            session: Optional preconfigured requests session
        """
        if not credentials and not bearer_token:
            raise ValueError("Either credentials or bearer_token is required")

        self.base_url = host_domain.rstrip('/') + self.API_PREFIX
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Content-Type': 'application/json'})
        if bearer_token:
            self.session.headers['Authorization'] = f'Bearer {bearer_token}'
        else:
            self.session.auth = credentials

        self.rate_limiter = RateLimiter(requests_per_second=requests_per_second)
        logger.info(f"Initialized WordPress client for {host_domain} (SSL verify: {verify_ssl})")

    def _make_request(self, method: str, endpoint: str, **kwargs) -> Any:
        """Make rate-limited HTTP request.

        Raises:
            TransientStoreError: On connection errors and timeouts
            StoreError: On HTTP errors (with appropriate subclass), other
                request failures and unparseable responses
        """
        self.rate_limiter.acquire()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault('verify', self.verify_ssl)
        kwargs.setdefault('timeout', self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise TransientStoreError(
                f"Network error calling {method} {endpoint}: {e}",
                details={"url": url}
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise StoreError(
                f"Request error calling {method} {endpoint}: {e}",
                details={"url": url}
            ) from e

        if not response.ok:
            raise handle_http_error(response.status_code, response.text)

        if not response.content:
            return None
        try:
            return response.json()
        except requests.exceptions.JSONDecodeError as e:
            raise StoreError(
                f"Invalid JSON from {method} {endpoint}: {e}",
                details={"url": url, "status_code": response.status_code}
            ) from e

    def get_types(self) -> Dict[str, Dict[str, Any]]:
        """Get registered post types keyed by type name."""
        return self._make_request('GET', 'types', params={'context': 'edit'}) or {}

    def get_post(self, rest_base: str, post_id: int) -> Dict[str, Any]:
        """Get a single post (with meta) from a type route."""
        return self._make_request('GET', f'{rest_base}/{post_id}', params={'context': 'edit'})

    def get_posts(self, rest_base: str, **params) -> List[Dict[str, Any]]:
        """Get posts of one type, following pagination."""
        params.setdefault('context', 'edit')
        params.setdefault('per_page', self.PAGE_SIZE)

        results: List[Dict[str, Any]] = []
        page = 1
        while True:
            batch = self._make_request('GET', rest_base, params={**params, 'page': page}) or []
            results.extend(batch)
            if len(batch) < params['per_page']:
                return results
            page += 1

    def update_post_meta(self, rest_base: str, post_id: int, meta: Dict[str, Any]) -> Dict[str, Any]:
        """Update meta values of a post. ``None`` deletes the key."""
        return self._make_request('POST', f'{rest_base}/{post_id}', json={'meta': meta})
