# Skill Consolidator
# Discovers SKILL.md files on GitHub, ranks them and keeps a catalog of checked repos

from .github_client import GitHubClient, GitHubError, RateLimitExceeded
from .github_crawler import CrawlConfig, GitHubSkillsCrawler
from .inventory import InventoryBuilder
from .repo_catalog import RepoCatalog
from .skill_parser import SkillParser
from .skill_ranker import rank_all

__all__ = [
    'GitHubClient',
    'GitHubError',
    'RateLimitExceeded',
    'CrawlConfig',
    'GitHubSkillsCrawler',
    'InventoryBuilder',
    'RepoCatalog',
    'SkillParser',
    'rank_all',
]
