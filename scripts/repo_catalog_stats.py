#!/usr/bin/env python3
"""
Print repo catalog stats and the repos due for a re-check.
"""

import os
import sys

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from consolidator.config import REPO_CATALOG_FILE
from consolidator.repo_catalog import RepoCatalog, compute_stats, stale_repos


def main():
    """Main entry point"""
    import argparse

    parser = argparse.ArgumentParser(description='Show repo catalog stats')
    parser.add_argument('--catalog', default=REPO_CATALOG_FILE, help='Repo catalog file')
    parser.add_argument('--max-age', type=float, default=24, help='Hours before a repo counts as stale')

    args = parser.parse_args()

    catalog = RepoCatalog(args.catalog).load()
    stats = compute_stats(catalog)

    print("Repo Catalog Summary:")
    print(f"  Repos tracked:    {stats['totalRepos']}")
    print(f"  With skills:      {stats['reposWithSkills']}")
    print(f"  Without skills:   {stats['emptyRepos']}")
    print(f"  Skill files:      {stats['totalSkills']}")
    print(f"  Oldest check:     {stats['oldestCheck'] or '-'}")
    print(f"  Newest check:     {stats['newestCheck'] or '-'}")
    print(f"  Last updated:     {stats['lastUpdated'] or '-'}")

    stale = stale_repos(catalog, args.max_age)
    print(f"\nStale repos (not checked in {args.max_age:g}h): {len(stale)}")
    for entry in stale:
        print(f"  {entry['name']}: last checked {entry['lastChecked']} ({entry.get('status', 'checked')})")


if __name__ == '__main__':
    main()
