"""Shared test fixtures."""

import json

import pytest

from consolidator.github_client import SearchError
from consolidator.models import (
    CodeSearchItem,
    DiscoveredSkill,
    RepoInfo,
    RepoSearchItem,
    SkillFile,
    SkillSource,
)
from consolidator.repo_catalog import RepoCatalog


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None, remaining=999, reset=0):
        self.status_code = status_code
        if text is None:
            text = json.dumps(payload if payload is not None else {})
        self.text = text
        self.headers = {
            'X-RateLimit-Remaining': str(remaining),
            'X-RateLimit-Reset': str(reset),
        }


class FakeSession:
    """Stands in for requests.Session, replaying queued responses"""

    def __init__(self, responses=None):
        self.headers = {}
        self.responses = list(responses or [])
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeClient:
    """In-memory GitHub: repos map to (RepoInfo, [paths])"""

    def __init__(self, repos=None, search_pages=None, code_results=None, authenticated=False,
                 failing_queries=None):
        self.repos = repos or {}
        self.search_pages = search_pages or {}
        self.code_results = code_results or {}
        self.authenticated = authenticated
        self.failing_queries = set(failing_queries or [])
        self.info_calls = []
        self.search_calls = []
        self.code_calls = []
        self.contents = {}

    def get_delay(self, is_search):
        return 0

    def fetch_repo_info(self, repo):
        self.info_calls.append(repo)
        return self.repos.get(repo, (RepoInfo(), []))[0]

    def list_skill_files(self, repo, branch=None):
        return [SkillFile(path=p) for p in self.repos.get(repo, (RepoInfo(), []))[1]]

    def search_repos(self, query, page=1, per_page=30):
        self.search_calls.append((query, page))
        if query in self.failing_queries:
            raise SearchError(f"GitHub Repository Search API returned 500")
        names = self.search_pages.get((query, page), [])
        items = [RepoSearchItem(repo=name, repo_url=f"https://github.com/{name}") for name in names]
        return len(items), items

    def search_code(self, query, page=1, per_page=30):
        self.code_calls.append(query)
        items = [
            CodeSearchItem(
                repo=repo,
                repo_url=f"https://github.com/{repo}",
                path=path,
                name='SKILL.md',
                html_url=f"https://github.com/{repo}/blob/main/{path}",
            )
            for repo, path in self.code_results.get(query, [])
        ]
        return len(items), items

    def fetch_file_content(self, repo, path):
        return self.contents.get(f"{repo}/{path}")


class FakeClock:
    """Monotonic clock that advances a fixed step on every reading"""

    def __init__(self, step=0.0):
        self.now = 0.0
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now

    def sleep(self, seconds):
        self.now += seconds


@pytest.fixture
def repo_catalog(tmp_path):
    return RepoCatalog(tmp_path / "repo-catalog.json")


@pytest.fixture
def make_skill():
    def _make(skill_id="my-skill", name="My Skill", description="", content="", tags=None,
              stars=0, forks=0, pushed_at=None, repo_description="", parse_errors=None):
        return DiscoveredSkill(
            id=skill_id,
            name=name,
            description=description,
            tags=list(tags or []),
            content=content,
            source=SkillSource(
                repo="acme/skills",
                url=f"https://github.com/acme/skills/blob/main/skills/{skill_id}/SKILL.md",
                stars=stars,
                forks=forks,
                pushed_at=pushed_at,
                path=f"skills/{skill_id}/SKILL.md",
                description=repo_description,
            ),
            parse_errors=list(parse_errors or []),
        )
    return _make
