"""
GitHub Skills Crawler
Walks known repos, repository search results and (with a token) code search
results for SKILL.md files, logging every repo visit to the repo catalog
"""

import time
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from .config import (
    GITHUB_WEB_BASE,
    KNOWN_SKILL_REPOS,
    REPO_SEARCH_QUERIES,
    CODE_SEARCH_QUERIES,
    SEARCH_PAGE_SIZE,
    CODE_SEARCH_PAGE_SIZE,
    MAX_SEARCH_PAGES,
    PAGE_CYCLE_PAUSE,
    SEARCH_FAILURE_COOLDOWN,
    DEFAULT_LIMIT,
)
from .github_client import GitHubClient, GitHubError
from .models import DiscoveredPath, DiscoveredSkill, RepoInfo, SkillFile
from .repo_catalog import (
    RepoCatalog,
    STATUS_HAS_SKILLS,
    STATUS_NO_SKILLS,
    record_visit,
)
from .skill_parser import SkillParser, skill_id_from_path

logger = logging.getLogger(__name__)


@dataclass
class CrawlConfig:
    queries: List[str] = field(default_factory=list)
    limit: int = DEFAULT_LIMIT
    duration_ms: int = 0

    @property
    def slow_walk(self) -> bool:
        return self.duration_ms > 0


class Deadline:
    """Wall-clock budget checked at loop boundaries; 0 ms means unlimited"""

    def __init__(self, duration_ms: int, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self.started = clock()
        self.duration = (duration_ms or 0) / 1000.0

    def expired(self) -> bool:
        if not self.duration:
            return False
        return self.clock() - self.started >= self.duration

    def elapsed(self) -> float:
        return self.clock() - self.started


@dataclass
class CrawlState:
    """Per-run bookkeeping"""
    catalog: dict
    checked_repos: Set[str] = field(default_factory=set)
    items: List[DiscoveredPath] = field(default_factory=list)
    repo_info: Dict[str, RepoInfo] = field(default_factory=dict)

    def has_item(self, repo: str, path: str) -> bool:
        key = f"{repo}:{path}"
        return any(item.key == key for item in self.items)


class GitHubSkillsCrawler:
    """Budgeted, resumable crawl for SKILL.md files"""

    def __init__(
        self,
        client: Optional[GitHubClient] = None,
        catalog: Optional[RepoCatalog] = None,
        parser: Optional[SkillParser] = None,
        known_repos: Optional[List[str]] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client or GitHubClient()
        self.catalog = catalog or RepoCatalog()
        self.parser = parser or SkillParser()
        self.known_repos = KNOWN_SKILL_REPOS if known_repos is None else known_repos
        self.sleep = sleep
        self.clock = clock
        self.last_state: Optional[CrawlState] = None

        if self.client.authenticated:
            logger.info("Using authenticated GitHub API")
        else:
            logger.warning("No GitHub token provided, rate limits will be strict and code search is disabled")

    def _pause(self, is_search: bool = False):
        self.sleep(self.client.get_delay(is_search))

    def _list_skill_files(self, repo: str, branch: str) -> List[SkillFile]:
        try:
            return self.client.list_skill_files(repo, branch)
        except GitHubError as e:
            logger.warning(f"   Could not list files for {repo}: {e}")
            return []

    def _fetch_repo_info(self, repo: str, state: CrawlState) -> RepoInfo:
        try:
            repo_info = self.client.fetch_repo_info(repo)
        except GitHubError as e:
            logger.warning(f"   Could not fetch repo info for {repo}: {e}")
            repo_info = RepoInfo()
        state.repo_info[repo] = repo_info
        return repo_info

    def scan_repo(self, repo: str, state: CrawlState) -> Tuple[RepoInfo, List[SkillFile]]:
        """Get repo info, list SKILL.md files and log the visit to the catalog"""
        logger.info(f"Checking repo: {repo}")
        repo_info = self._fetch_repo_info(repo, state)
        self._pause()

        logger.info(
            f"   ★{repo_info.stars} | {repo_info.forks} forks | "
            f"last push: {repo_info.pushed_at or 'unknown'}"
        )

        skill_files = self._list_skill_files(repo, repo_info.default_branch)
        self._pause()

        record_visit(state.catalog, repo, {
            'stars': repo_info.stars,
            'forks': repo_info.forks,
            'description': repo_info.description,
            'skillCount': len(skill_files),
            'skillIds': [skill_id_from_path(f.path) for f in skill_files],
            'status': STATUS_HAS_SKILLS if skill_files else STATUS_NO_SKILLS,
        })
        self.catalog.save(state.catalog)

        if skill_files:
            logger.info(f"   Found {len(skill_files)} skill(s)")
        else:
            logger.info("   No skills found")

        return repo_info, skill_files

    def _collect(self, state: CrawlState, repo: str, repo_url: str, repo_info: RepoInfo,
                 skill_files: List[SkillFile], limit: int):
        for skill_file in skill_files:
            if len(state.items) >= limit:
                break
            state.items.append(DiscoveredPath(
                repo=repo,
                repo_url=repo_url,
                path=skill_file.path,
                name=skill_file.name,
                html_url=f"{GITHUB_WEB_BASE}/{repo}/blob/{repo_info.default_branch}/{skill_file.path}",
            ))

    def _done(self, state: CrawlState, config: CrawlConfig, deadline: Deadline) -> bool:
        return deadline.expired() or len(state.items) >= config.limit

    def crawl_known_repos(self, state: CrawlState, config: CrawlConfig, deadline: Deadline):
        logger.info("─── Phase 1: Known repos ───")
        for repo in self.known_repos:
            if self._done(state, config, deadline):
                break
            if repo in state.checked_repos:
                continue
            state.checked_repos.add(repo)

            try:
                repo_info, skill_files = self.scan_repo(repo, state)
            except GitHubError as e:
                logger.warning(f"Known repo {repo} failed: {e}")
                continue
            self._collect(state, repo, f"{GITHUB_WEB_BASE}/{repo}", repo_info, skill_files, config.limit)

    def crawl_repo_search(self, state: CrawlState, config: CrawlConfig, deadline: Deadline):
        logger.info("─── Phase 2: Repository search ───")
        queries = config.queries or REPO_SEARCH_QUERIES
        query_index = 0
        page = 1

        while not self._done(state, config, deadline):
            if query_index >= len(queries):
                if not config.slow_walk:
                    break
                # Cycle back and try deeper pages
                query_index = 0
                page += 1
                if page > MAX_SEARCH_PAGES:
                    logger.info("Exhausted search pages, pausing before next cycle...")
                    self.sleep(PAGE_CYCLE_PAUSE)
                    page = 1
                    if deadline.expired():
                        break

            query = queries[query_index]
            query_index += 1

            try:
                logger.info(f'Search: "{query}" (page {page})')
                _, results = self.client.search_repos(query, page, SEARCH_PAGE_SIZE)
                self._pause(is_search=True)

                if not results:
                    logger.info("   No results for this query/page")
                    continue

                for result in results:
                    if self._done(state, config, deadline):
                        break
                    if result.repo in state.checked_repos:
                        continue
                    state.checked_repos.add(result.repo)

                    repo_info, skill_files = self.scan_repo(result.repo, state)
                    self._collect(state, result.repo, result.repo_url, repo_info, skill_files, config.limit)
            except GitHubError as e:
                logger.warning(f'Search "{query}" failed: {e}')
                if config.slow_walk:
                    logger.info(f"   Cooling down for {SEARCH_FAILURE_COOLDOWN}s...")
                    self.sleep(SEARCH_FAILURE_COOLDOWN)

    def crawl_code_search(self, state: CrawlState, config: CrawlConfig, deadline: Deadline):
        logger.info("─── Phase 3: Code search (authenticated) ───")
        for query in CODE_SEARCH_QUERIES:
            if self._done(state, config, deadline):
                break
            try:
                logger.info(f'Code search: "{query}"')
                per_page = min(config.limit - len(state.items), CODE_SEARCH_PAGE_SIZE)
                _, results = self.client.search_code(query, 1, per_page)
                self._pause(is_search=True)

                for result in results:
                    if len(state.items) >= config.limit:
                        break
                    if state.has_item(result.repo, result.path):
                        continue
                    state.items.append(DiscoveredPath(
                        repo=result.repo,
                        repo_url=result.repo_url,
                        path=result.path,
                        name=result.name,
                        html_url=result.html_url,
                    ))

                    if result.repo in state.checked_repos:
                        continue
                    state.checked_repos.add(result.repo)
                    repo_info = self._fetch_repo_info(result.repo, state)
                    self._pause()
                    record_visit(state.catalog, result.repo, {
                        'stars': repo_info.stars,
                        'forks': repo_info.forks,
                        'description': repo_info.description,
                        'skillCount': 1,
                        'status': STATUS_HAS_SKILLS,
                    })
                    self.catalog.save(state.catalog)
            except GitHubError as e:
                logger.warning(f'Code search "{query}" failed: {e}')

    def run(self, config: CrawlConfig) -> List[DiscoveredPath]:
        """Search for skill repos, honouring the result limit and time budget"""
        deadline = Deadline(config.duration_ms, self.clock)
        state = CrawlState(catalog=self.catalog.load())
        self.last_state = state

        if config.slow_walk:
            hours = config.duration_ms / 3600000
            logger.info(f"Slow walk mode: scanning for up to {hours:.1f} hour(s)")

        self.crawl_known_repos(state, config, deadline)
        self.crawl_repo_search(state, config, deadline)

        if self.client.authenticated and not self._done(state, config, deadline):
            self.crawl_code_search(state, config, deadline)

        logger.info("─── Done ───")
        logger.info(
            f"Checked {len(state.checked_repos)} repos in {deadline.elapsed():.0f}s, "
            f"found {len(state.items)} skill files"
        )
        logger.info(f"Repo catalog: {len(state.catalog.get('repos', {}))} total repos tracked")

        return state.items[:config.limit]

    def discover(self, config: CrawlConfig) -> Tuple[int, List[DiscoveredSkill]]:
        """Crawl, then fetch and parse every discovered SKILL.md"""
        items = self.run(config)
        repo_info_cache = dict(self.last_state.repo_info) if self.last_state else {}

        by_repo: Dict[str, List[DiscoveredPath]] = {}
        for item in items:
            by_repo.setdefault(item.repo, []).append(item)

        discovered = []
        for repo, repo_items in by_repo.items():
            if repo not in repo_info_cache:
                try:
                    repo_info_cache[repo] = self.client.fetch_repo_info(repo)
                except GitHubError as e:
                    logger.warning(f"Could not fetch repo info for {repo}: {e}")
                    repo_info_cache[repo] = RepoInfo()
                self._pause()
            repo_info = repo_info_cache[repo]

            for item in repo_items:
                logger.info(f"Fetching: {item.repo}/{item.path}")
                try:
                    content = self.client.fetch_file_content(repo, item.path)
                except GitHubError as e:
                    logger.warning(f"   Failed to fetch content: {e}")
                    continue
                if not content:
                    logger.warning("   Failed to fetch content")
                    continue
                self._pause()

                skill = self.parser.parse(content, item, repo_info)
                discovered.append(skill)
                logger.info(f"   {skill.id}: {skill.description[:60]}...")

        return len(by_repo), discovered
