"""GitHub profile lookup used to enrich sponsors"""
import logging
import time
from typing import Dict, Optional

import requests

from sponsortiers.models.sponsor import SponsorProfile

logger = logging.getLogger(__name__)

class GitHubAPI:
    """Handles GitHub REST API interactions"""

    def __init__(self, token: str, base_url: str = "https://api.github.com", timeout: float = 5.0,
                 max_attempts: int = 2, retry_delay: float = 1.0):
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self.api_version = "2022-11-28"

    def get_user(self, login: str) -> Optional[dict]:
        """Get a user or organization by login, None if it does not exist"""
        return self._make_request(f'users/{login}')

    def _make_request(self, endpoint: str) -> Optional[dict]:
        """
        Make request to GitHub API, retrying connection errors and 5xx responses.

        Client errors (401, 403, 422...) are raised on the first attempt.
        """
        headers = {
            'Authorization': f'Bearer {self.token}',
            'X-GitHub-Api-Version': self.api_version,
            'Accept': 'application/vnd.github+json'
        }

        for attempt in range(self.max_attempts):
            try:
                response = requests.get(
                    f'{self.base_url}/{endpoint}',
                    headers=headers,
                    timeout=self.timeout
                )
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                return response.json()
            except requests.RequestException as e:
                if attempt == self.max_attempts - 1 or not _is_retryable(e):
                    raise
                logger.warning(f"Retrying request after error: {e}")
                time.sleep(self.retry_delay)  # Wait before retry

    def get_profile(self, login: str) -> Optional[SponsorProfile]:
        """Get a sponsor profile in our domain model"""
        user = self.get_user(login)
        if not user:
            return None
        return self._format_profile(login, user)

    def _format_profile(self, login: str, user: Dict) -> SponsorProfile:
        """Format a REST user payload into a SponsorProfile"""
        fallback = SponsorProfile.default_for(login)
        return SponsorProfile(
            login=user.get('login') or login,
            name=user.get('name') or None,
            avatar_url=user.get('avatar_url') or fallback.avatar_url,
            profile_url=user.get('html_url') or fallback.profile_url,
            website_url=_normalize_website(user.get('blog')),
            entity_type=user.get('type') or fallback.entity_type
        )

def _is_retryable(error: requests.RequestException) -> bool:
    response = getattr(error, 'response', None)
    if response is None:
        return True
    return response.status_code >= 500

def _normalize_website(url: Optional[str]) -> Optional[str]:
    """GitHub stores the blog field as typed by the user, often without a scheme"""
    if not url:
        return None
    url = url.strip()
    if not url:
        return None
    if not url.startswith(('http://', 'https://')):
        url = f'https://{url}'
    return url

class ProfileEnricher:
    """
    Looks up sponsor profiles one at a time, never failing the batch.

    Without an API client (offline mode or no token) every lookup returns None
    and the export-derived defaults are kept.
    """

    def __init__(self, api: Optional[GitHubAPI] = None, delay: float = 0.1):
        self.api = api
        self.delay = delay
        self.failures = 0
        self._calls = 0

    def __call__(self, login: str) -> Optional[SponsorProfile]:
        return self.lookup(login)

    def lookup(self, login: str) -> Optional[SponsorProfile]:
        if not self.api:
            return None

        if self._calls and self.delay:
            time.sleep(self.delay)  # Rate limiting
        self._calls += 1

        try:
            return self.api.get_profile(login)
        except (requests.RequestException, ValueError, AttributeError) as e:
            self.failures += 1
            logger.warning(f"Profile lookup failed for {login}, using export defaults: {e}")
            return None
