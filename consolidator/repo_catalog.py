"""
Repository catalog
Durable record of every repository the crawler has visited, kept across runs
"""

import os
import json
import logging
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

from .config import GITHUB_WEB_BASE, MAX_CHECK_HISTORY, REPO_CATALOG_FILE

logger = logging.getLogger(__name__)

STATUS_HAS_SKILLS = 'has-skills'
STATUS_NO_SKILLS = 'no-skills'
STATUS_CHECKED = 'checked'


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix"""
    return moment.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.') + f"{moment.microsecond // 1000:03d}Z"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def empty_catalog() -> dict:
    return {'repos': {}, 'lastUpdated': None}


def record_visit(catalog: dict, repo: str, info: dict, now: Optional[datetime] = None) -> dict:
    """
    Log a repo check: timestamp, status, skill count and repo metadata.
    Mutates and returns the same catalog.
    """
    timestamp = format_timestamp(now or utc_now())
    repos = catalog.setdefault('repos', {})
    status = info.get('status') or STATUS_CHECKED
    skill_count = info.get('skillCount') or 0

    entry = repos.get(repo)
    if entry is None:
        entry = {
            'firstSeen': timestamp,
            'lastChecked': timestamp,
            'checks': [],
            'stars': info.get('stars') or 0,
            'forks': info.get('forks') or 0,
            'description': info.get('description') or '',
            'url': f"{GITHUB_WEB_BASE}/{repo}",
            'skillCount': skill_count,
            'skillIds': list(info.get('skillIds') or []),
            'status': status,
        }
        repos[repo] = entry
    else:
        entry['lastChecked'] = timestamp
        entry['stars'] = info.get('stars') or entry.get('stars', 0)
        entry['forks'] = info.get('forks') or entry.get('forks', 0)
        entry['description'] = info.get('description') or entry.get('description', '')
        entry['skillCount'] = skill_count or entry.get('skillCount', 0)
        if info.get('skillIds'):
            entry['skillIds'] = list(info['skillIds'])
        entry['status'] = status

    checks = entry.setdefault('checks', [])
    checks.append({
        'timestamp': timestamp,
        'skillCount': skill_count,
        'status': status,
    })
    if len(checks) > MAX_CHECK_HISTORY:
        entry['checks'] = checks[-MAX_CHECK_HISTORY:]

    return catalog


def stale_repos(catalog: dict, max_age_hours: float = 24, now: Optional[datetime] = None) -> List[Dict]:
    """Repos not checked within max_age_hours, least recently checked first"""
    cutoff = format_timestamp((now or utc_now()) - timedelta(hours=max_age_hours))
    stale = [
        {'name': name, **entry}
        for name, entry in catalog.get('repos', {}).items()
        if (entry.get('lastChecked') or '') < cutoff
    ]
    return sorted(stale, key=lambda entry: entry.get('lastChecked') or '')


def compute_stats(catalog: dict) -> dict:
    """Summary stats for the repo catalog"""
    entries = list(catalog.get('repos', {}).values())
    checked = [entry['lastChecked'] for entry in entries if entry.get('lastChecked')]

    return {
        'totalRepos': len(entries),
        'reposWithSkills': sum(1 for entry in entries if (entry.get('skillCount') or 0) > 0),
        'emptyRepos': sum(1 for entry in entries if (entry.get('skillCount') or 0) == 0),
        'totalSkills': sum(entry.get('skillCount') or 0 for entry in entries),
        'oldestCheck': min(checked) if checked else None,
        'newestCheck': max(checked) if checked else None,
        'lastUpdated': catalog.get('lastUpdated'),
    }


class RepoCatalog:
    """Load, update and persist the repository catalog file"""

    def __init__(self, path=None):
        self.path = Path(path or REPO_CATALOG_FILE)

    def load(self) -> dict:
        """Read the catalog; an empty catalog when absent or unreadable"""
        if not self.path.exists():
            return empty_catalog()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                catalog = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read repo catalog {self.path}: {e}")
            return empty_catalog()

        if not isinstance(catalog, dict) or not isinstance(catalog.get('repos'), dict):
            logger.warning(f"Ignoring malformed repo catalog {self.path}")
            return empty_catalog()
        catalog.setdefault('lastUpdated', None)
        return catalog

    def save(self, catalog: dict, now: Optional[datetime] = None):
        """Stamp lastUpdated and replace the catalog file atomically"""
        catalog['lastUpdated'] = format_timestamp(now or utc_now())
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(prefix=f'.{self.path.name}.', suffix='.tmp', dir=str(directory))
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(catalog, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    record_visit = staticmethod(record_visit)
    compute_stats = staticmethod(compute_stats)
    stale_repos = staticmethod(stale_repos)
