"""HTTP session setup shared by the clients of external services."""

from typing import Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


def create_retry_session(
    max_retries: int,
    retry_delay: float,
    headers: Optional[Dict[str, str]] = None,
) -> requests.Session:
    """Create a requests session retrying idempotent requests on gateway errors.

    Args:
        max_retries: Maximum number of retries
        retry_delay: Backoff factor between retries in seconds
        headers: Headers sent with every request

    Returns:
        Configured session. Error statuses are returned, not raised.
    """
    session = requests.Session()
    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=retry_delay,
        status_forcelist=[502, 503, 504],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    if headers:
        session.headers.update(headers)
    return session
