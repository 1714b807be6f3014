"""Data models shared by the crawler, ranker and inventory builder."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RepoInfo:
    """Repository metadata as reported by the repos endpoint."""
    stars: int = 0
    forks: int = 0
    pushed_at: Optional[str] = None
    description: str = ""
    default_branch: str = "main"


@dataclass
class RepoSearchItem:
    repo: str
    repo_url: str
    stars: int = 0
    forks: int = 0
    pushed_at: Optional[str] = None
    description: str = ""
    default_branch: str = "main"


@dataclass
class CodeSearchItem:
    repo: str
    repo_url: str
    path: str
    name: str
    html_url: str


@dataclass
class SkillFile:
    path: str
    name: str = "SKILL.md"


@dataclass
class DiscoveredPath:
    """A skill document location found during a crawl."""
    repo: str
    repo_url: str
    path: str
    name: str
    html_url: str

    @property
    def key(self) -> str:
        return f"{self.repo}:{self.path}"

    def to_dict(self) -> dict:
        return {
            'repo': self.repo,
            'repoUrl': self.repo_url,
            'path': self.path,
            'name': self.name,
            'htmlUrl': self.html_url,
        }


@dataclass
class SkillSource:
    repo: str
    url: str
    stars: int = 0
    forks: int = 0
    pushed_at: Optional[str] = None
    path: str = ""
    description: str = ""

    def to_dict(self) -> dict:
        return {
            'repo': self.repo,
            'url': self.url,
            'stars': self.stars,
            'forks': self.forks,
            'pushedAt': self.pushed_at,
            'path': self.path,
            'description': self.description,
        }


@dataclass
class DiscoveredSkill:
    """One parsed skill document."""
    id: str
    name: str
    description: str = ""
    tags: List[str] = field(default_factory=list)
    content: str = ""
    source: Optional[SkillSource] = None
    parse_errors: List[str] = field(default_factory=list)


@dataclass
class ScoreBreakdown:
    completeness: int = 0
    uniqueness: int = 0
    quality: int = 0
    repo_signals: int = 0

    @property
    def total(self) -> int:
        return self.completeness + self.uniqueness + self.quality + self.repo_signals

    def to_dict(self) -> dict:
        return {
            'completeness': self.completeness,
            'uniqueness': self.uniqueness,
            'quality': self.quality,
            'repoSignals': self.repo_signals,
        }


@dataclass
class RankedSkill:
    """A discovered skill with its score, tier and duplicate verdict."""
    id: str
    name: str
    description: str
    category: str
    tags: List[str]
    source: Optional[SkillSource]
    score: int
    tier: str
    is_duplicate: bool
    duplicate_of: Optional[str]
    breakdown: ScoreBreakdown

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'tags': list(self.tags),
            'source': self.source.to_dict() if self.source else None,
            'score': self.score,
            'tier': self.tier,
            'isDuplicate': self.is_duplicate,
            'duplicateOf': self.duplicate_of,
            'breakdown': self.breakdown.to_dict(),
        }


@dataclass
class Inventory:
    scanned_at: str
    query: str
    repos_scanned: int
    total_discovered: int
    duration: str
    skills: List[RankedSkill] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'scannedAt': self.scanned_at,
            'query': self.query,
            'reposScanned': self.repos_scanned,
            'totalDiscovered': self.total_discovered,
            'duration': self.duration,
            'skills': [skill.to_dict() for skill in self.skills],
        }
