"""
GitHub API client
Rate-limited GET requests plus typed helpers for the search, tree,
contents and repository endpoints.
"""

import os
import json
import math
import time
import base64
import logging
import requests
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
from urllib.parse import quote

from .config import (
    GITHUB_API_BASE,
    GITHUB_WEB_BASE,
    USER_AGENT,
    TOKEN_ENV_VAR,
    SKILL_FILENAME,
    MAX_RETRIES,
    SERVER_ERROR_BACKOFF,
    LOW_RATE_LIMIT_WARNING,
    REQUEST_TIMEOUT,
    AUTH_SEARCH_DELAY,
    AUTH_REQUEST_DELAY,
    ANON_SEARCH_DELAY,
    ANON_REQUEST_DELAY,
)
from .models import CodeSearchItem, RepoInfo, RepoSearchItem, SkillFile

logger = logging.getLogger(__name__)

UNPROCESSABLE = 422
EMPTY_SEARCH_BODY = '{"total_count": 0, "items": []}'


class GitHubError(Exception):
    """Base class for client-level GitHub failures"""


class RateLimitExceeded(GitHubError):
    """Rate limit still exhausted after every retry"""

    def __init__(self, wait_seconds: int):
        self.wait_seconds = wait_seconds
        super().__init__(
            f"GitHub API rate limit exceeded. Resets in {wait_seconds}s. "
            f"Set {TOKEN_ENV_VAR} for higher limits."
        )


class TransientError(GitHubError):
    """Connection failure that outlasted the retry budget"""


class SearchError(GitHubError):
    """A search endpoint answered with an error status"""


@dataclass
class ApiResponse:
    status_code: int
    body: str
    rate_limit_remaining: int = 999
    rate_limit_reset: int = 0

    @property
    def ok(self) -> bool:
        # 422 responses carry a synthesized empty result
        return self.status_code == 200 or self.status_code == UNPROCESSABLE

    def json(self):
        return json.loads(self.body) if self.body else {}

    def error_message(self) -> str:
        try:
            return self.json().get('message', '')
        except (ValueError, AttributeError):
            return ''


@dataclass
class RetryOutcome:
    """Result of the bounded retry loop: a response, or why there is none"""
    response: Optional[ApiResponse] = None
    exhausted: bool = False
    wait_seconds: int = 0
    error: Optional[Exception] = None


def _int_header(headers, name: str, default: int) -> int:
    try:
        return int(headers.get(name, default))
    except (TypeError, ValueError):
        return default


def parse_repo_search(data: dict) -> Tuple[int, List[RepoSearchItem]]:
    items = [
        RepoSearchItem(
            repo=item['full_name'],
            repo_url=item.get('html_url') or f"{GITHUB_WEB_BASE}/{item['full_name']}",
            stars=item.get('stargazers_count') or 0,
            forks=item.get('forks_count') or 0,
            pushed_at=item.get('pushed_at'),
            description=item.get('description') or '',
            default_branch=item.get('default_branch') or 'main',
        )
        for item in data.get('items') or []
    ]
    return data.get('total_count') or 0, items


def parse_code_search(data: dict) -> Tuple[int, List[CodeSearchItem]]:
    items = [
        CodeSearchItem(
            repo=item['repository']['full_name'],
            repo_url=item['repository'].get('html_url') or '',
            path=item['path'],
            name=item.get('name') or SKILL_FILENAME,
            html_url=item.get('html_url') or '',
        )
        for item in data.get('items') or []
    ]
    return data.get('total_count') or 0, items


def parse_tree(data: dict) -> List[SkillFile]:
    """Pick SKILL.md blobs out of a recursive git tree listing"""
    return [
        SkillFile(path=node['path'], name=SKILL_FILENAME)
        for node in data.get('tree') or []
        if node.get('type') == 'blob' and node.get('path', '').endswith(SKILL_FILENAME)
    ]


def parse_repo_info(data: dict) -> RepoInfo:
    return RepoInfo(
        stars=data.get('stargazers_count') or 0,
        forks=data.get('forks_count') or 0,
        pushed_at=data.get('pushed_at'),
        description=data.get('description') or '',
        default_branch=data.get('default_branch') or 'main',
    )


def decode_content(data: dict) -> Optional[str]:
    content = data.get('content')
    if not content:
        return None
    return base64.b64decode(content).decode('utf-8', errors='replace')


class GitHubClient:
    """Sequential, rate-limit aware GitHub API client"""

    def __init__(
        self,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        max_retries: int = MAX_RETRIES,
    ):
        self.token = token or os.environ.get(TOKEN_ENV_VAR)
        self.session = session or requests.Session()
        self.sleep = sleep
        self.clock = clock
        self.max_retries = max_retries

        self.session.headers['User-Agent'] = USER_AGENT
        self.session.headers['Accept'] = 'application/vnd.github.v3+json'
        if self.token:
            self.session.headers['Authorization'] = f'token {self.token}'

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def get_delay(self, is_search: bool) -> float:
        """Pause to leave between logical requests for the current rate tier"""
        if self.authenticated:
            return AUTH_SEARCH_DELAY if is_search else AUTH_REQUEST_DELAY
        return ANON_SEARCH_DELAY if is_search else ANON_REQUEST_DELAY

    def _send(self, url: str, params: Optional[dict]) -> ApiResponse:
        response = self.session.get(url, params=params, timeout=REQUEST_TIMEOUT)
        return ApiResponse(
            status_code=response.status_code,
            body=response.text,
            rate_limit_remaining=_int_header(response.headers, 'X-RateLimit-Remaining', 999),
            rate_limit_reset=_int_header(response.headers, 'X-RateLimit-Reset', 0),
        )

    def fetch(self, url: str, params: Optional[dict] = None) -> RetryOutcome:
        """Issue a GET with bounded retries and report the outcome"""
        outcome = RetryOutcome()
        for attempt in range(self.max_retries + 1):
            try:
                result = self._send(url, params)
            except requests.RequestException as e:
                outcome = RetryOutcome(error=e)
                if attempt < self.max_retries:
                    backoff = SERVER_ERROR_BACKOFF * (attempt + 1)
                    logger.warning(f"Request failed ({e}), retrying in {backoff:.0f}s...")
                    self.sleep(backoff)
                    continue
                return outcome

            if result.status_code == 403 and result.rate_limit_remaining == 0:
                wait = max(result.rate_limit_reset - self.clock(), 1)
                wait_seconds = math.ceil(wait)
                if attempt < self.max_retries:
                    logger.warning(f"Rate limited. Waiting {wait_seconds}s...")
                    self.sleep(wait)
                    continue
                return RetryOutcome(response=result, exhausted=True, wait_seconds=wait_seconds)

            if result.status_code == UNPROCESSABLE:
                return RetryOutcome(response=ApiResponse(
                    status_code=UNPROCESSABLE,
                    body=EMPTY_SEARCH_BODY,
                    rate_limit_remaining=result.rate_limit_remaining,
                    rate_limit_reset=result.rate_limit_reset,
                ))

            if result.status_code >= 500 and attempt < self.max_retries:
                backoff = SERVER_ERROR_BACKOFF * (attempt + 1)
                logger.warning(f"Server error ({result.status_code}), retrying in {backoff:.0f}s...")
                self.sleep(backoff)
                continue

            if result.rate_limit_remaining < LOW_RATE_LIMIT_WARNING:
                logger.warning(f"Rate limit remaining: {result.rate_limit_remaining}")

            return RetryOutcome(response=result)

        return outcome

    def get(self, url: str, params: Optional[dict] = None) -> ApiResponse:
        """GET a URL, raising once the retry budget is spent"""
        outcome = self.fetch(url, params)
        if outcome.exhausted:
            raise RateLimitExceeded(outcome.wait_seconds)
        if outcome.response is None:
            raise TransientError(f"Request to {url} failed: {outcome.error}")
        return outcome.response

    def _search(self, endpoint: str, label: str, params: dict) -> dict:
        result = self.get(f"{GITHUB_API_BASE}/search/{endpoint}", params)
        if not result.ok:
            message = f"GitHub {label} API returned {result.status_code}"
            detail = result.error_message()
            if detail:
                message += f": {detail}"
            raise SearchError(message)
        return result.json()

    def search_repos(self, query: str, page: int = 1, per_page: int = 30) -> Tuple[int, List[RepoSearchItem]]:
        """Search repositories by keyword, most starred first (works without auth)"""
        data = self._search('repositories', 'Repository Search', {
            'q': query,
            'sort': 'stars',
            'order': 'desc',
            'per_page': per_page,
            'page': page,
        })
        return parse_repo_search(data)

    def search_code(self, query: str, page: int = 1, per_page: int = 30) -> Tuple[int, List[CodeSearchItem]]:
        """Search code (requires a token)"""
        data = self._search('code', 'Code Search', {
            'q': query,
            'per_page': per_page,
            'page': page,
        })
        return parse_code_search(data)

    def list_skill_files(self, repo: str, branch: Optional[str] = None) -> List[SkillFile]:
        """List SKILL.md files via the recursive git tree, falling back to master"""
        branch = branch or 'main'
        url = f"{GITHUB_API_BASE}/repos/{repo}/git/trees/{quote(branch, safe='')}"
        try:
            result = self.get(url, {'recursive': '1'})
        except TransientError as e:
            if branch == 'master':
                raise
            logger.warning(f"Tree listing for {repo}@{branch} failed ({e}), trying master")
            return self.list_skill_files(repo, 'master')

        if result.status_code != 200:
            if branch != 'master':
                return self.list_skill_files(repo, 'master')
            return []

        return parse_tree(result.json())

    def fetch_file_content(self, repo: str, path: str) -> Optional[str]:
        """Fetch and decode one file; None when it cannot be retrieved"""
        encoded_path = '/'.join(quote(part, safe='') for part in path.split('/'))
        result = self.get(f"{GITHUB_API_BASE}/repos/{repo}/contents/{encoded_path}")

        if result.status_code != 200:
            logger.debug(f"Could not fetch {repo}/{path}: HTTP {result.status_code}")
            return None

        return decode_content(result.json())

    def fetch_repo_info(self, repo: str) -> RepoInfo:
        """Get repository metadata, or all-default metadata on failure"""
        result = self.get(f"{GITHUB_API_BASE}/repos/{repo}")

        if result.status_code != 200:
            return RepoInfo()

        return parse_repo_info(result.json())
