"""
Inventory builder
Crawls, ranks and writes the discovered-skills inventory and its markdown report
"""

import re
import json
import logging
from collections import Counter
from pathlib import Path
from typing import List, Optional

from .config import (
    DEFAULT_INVENTORY_LIMIT,
    DEFAULT_QUERY,
    INVENTORY_JSON_FILE,
    INVENTORY_MD_FILE,
    SKILL_CATALOG_FILE,
    TIERS,
    TIER_LABELS,
)
from .github_crawler import CrawlConfig, GitHubSkillsCrawler
from .models import Inventory
from .repo_catalog import compute_stats, format_timestamp, utc_now
from .skill_ranker import rank_all

logger = logging.getLogger(__name__)

DURATION_RE = re.compile(
    r'^(\d+(?:\.\d+)?)\s*(h|hr|hrs|hour|hours|m|min|mins|minute|minutes)$',
    re.IGNORECASE,
)


def parse_duration(value) -> int:
    """Parse "1h", "30m", "90 minutes" into milliseconds; bare numbers are minutes"""
    if not value:
        return 0
    text = str(value).strip()
    match = DURATION_RE.match(text)
    if not match:
        try:
            minutes = float(text)
        except ValueError:
            return 0
        return int(minutes * 60 * 1000) if minutes > 0 else 0

    amount = float(match.group(1))
    if match.group(2).lower().startswith('h'):
        return int(amount * 60 * 60 * 1000)
    return int(amount * 60 * 1000)


def duration_label(duration_ms: int) -> str:
    if not duration_ms:
        return 'single pass'
    return f"{duration_ms / 3600000:.1f} hour(s)"


def truncate(value: str, limit: int) -> str:
    if not value or len(value) <= limit:
        return value or ''
    return f"{value[:limit - 3]}..."


def load_existing_skills(path) -> List[dict]:
    """Skills already in the catalog; empty when the file is absent or unreadable"""
    path = Path(path)
    if not path.exists():
        return []
    try:
        with open(path, 'r', encoding='utf-8') as f:
            catalog = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read skill catalog {path}: {e}")
        return []
    skills = catalog.get('skills') if isinstance(catalog, dict) else None
    return [s for s in skills or [] if isinstance(s, dict)]


def render_markdown(inventory: Inventory) -> str:
    """Human-readable tiered report"""
    lines = [
        '# Discovered Skills Report',
        '',
        f"Scanned at: {inventory.scanned_at}",
        f"Query: `{inventory.query}`",
        f"Repos scanned: {inventory.repos_scanned}",
        f"Total discovered: {inventory.total_discovered}",
    ]
    if inventory.duration:
        lines.append(f"Scan duration: {inventory.duration}")
    lines.append('')

    for tier, _ in TIERS:
        tier_skills = [s for s in inventory.skills if s.tier == tier]
        if not tier_skills:
            continue

        lines.append(f"## {TIER_LABELS[tier]} — {len(tier_skills)} skills")
        lines.append('')
        lines.append('| Score | Skill | Category | Description | Source | Duplicate? |')
        lines.append('| :---: | --- | --- | --- | --- | :---: |')

        for skill in tier_skills:
            desc = truncate(skill.description, 120).replace('|', '\\|')
            source = f"[{skill.source.repo}]({skill.source.url})" if skill.source else ''
            dup = f"⚠️ {skill.duplicate_of}" if skill.is_duplicate else '✅ Unique'
            lines.append(f"| {skill.score} | `{skill.id}` | {skill.category} | {desc} | {source} | {dup} |")

        lines.append('')

    lines.append('## Category Summary')
    lines.append('')
    counts = Counter(skill.category for skill in inventory.skills)
    for category, count in sorted(counts.items(), key=lambda x: -x[1]):
        lines.append(f"- **{category}**: {count} skills")
    lines.append('')

    return '\n'.join(lines)


class InventoryBuilder:
    """Ties crawl, ranking and report writing together"""

    def __init__(self, crawler: Optional[GitHubSkillsCrawler] = None, output_dir='.',
                 skill_catalog_path=None):
        self.crawler = crawler or GitHubSkillsCrawler()
        self.output_dir = Path(output_dir)
        self.skill_catalog_path = Path(skill_catalog_path or self.output_dir / SKILL_CATALOG_FILE)

    def _log_catalog_stats(self):
        stats = compute_stats(self.crawler.catalog.load())
        logger.info(
            f"Repo catalog: {stats['totalRepos']} repos tracked total, "
            f"{stats['reposWithSkills']} with skills, {stats['totalSkills']} skill files known."
        )
        return stats

    def build(self, query: str = DEFAULT_QUERY, limit: int = DEFAULT_INVENTORY_LIMIT,
              min_score: int = 0, duration_ms: int = 0) -> Optional[Inventory]:
        """Run a discovery pass; None when nothing was discovered"""
        label = duration_label(duration_ms)
        logger.info(f"Starting consolidation (limit: {limit}, duration: {label})")

        existing = load_existing_skills(self.skill_catalog_path)
        logger.info(f"Loaded {len(existing)} existing skills for deduplication.")

        repos_scanned, discovered = self.crawler.discover(CrawlConfig(
            queries=[query] if query else [],
            limit=limit,
            duration_ms=duration_ms,
        ))
        logger.info(f"Discovered {len(discovered)} skills from {repos_scanned} repos.")

        if not discovered:
            logger.info("No skills discovered. Try a different search query or set GITHUB_TOKEN.")
            self._log_catalog_stats()
            return None

        logger.info("Ranking and categorizing...")
        ranked = rank_all(discovered, existing)

        if min_score > 0:
            ranked = [s for s in ranked if s.score >= min_score]
            logger.info(f"Filtered to {len(ranked)} skills with score >= {min_score}.")

        inventory = Inventory(
            scanned_at=format_timestamp(utc_now()),
            query=query,
            repos_scanned=repos_scanned,
            total_discovered=len(ranked),
            duration=label,
            skills=ranked,
        )
        self.write(inventory)
        self._log_catalog_stats()
        return inventory

    def write(self, inventory: Inventory):
        self.output_dir.mkdir(parents=True, exist_ok=True)
        json_path = self.output_dir / INVENTORY_JSON_FILE
        md_path = self.output_dir / INVENTORY_MD_FILE

        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump(inventory.to_dict(), f, indent=2, ensure_ascii=False)
        md_path.write_text(render_markdown(inventory), encoding='utf-8')

        logger.info(f"Output: {json_path}")
        logger.info(f"Output: {md_path}")


def main(argv=None):
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Discover, rank and inventory SKILL.md files on GitHub')
    parser.add_argument('--query', default=DEFAULT_QUERY, help='Repository search query')
    parser.add_argument('--limit', type=int, default=DEFAULT_INVENTORY_LIMIT, help='Maximum skill files to collect')
    parser.add_argument('--min-score', type=int, default=0, help='Drop skills scoring below this')
    parser.add_argument('--output', default='.', help='Output directory')
    parser.add_argument('--duration', help='Slow walk time budget, e.g. 1h or 30m')

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(message)s')

    builder = InventoryBuilder(output_dir=args.output)
    inventory = builder.build(
        query=args.query,
        limit=args.limit,
        min_score=args.min_score,
        duration_ms=parse_duration(args.duration),
    )
    if inventory:
        print(f"\nConsolidation complete. {inventory.total_discovered} skills inventoried.")
    return inventory


if __name__ == '__main__':
    main()
