#!/usr/bin/env python3
"""
Skill consolidation entry point
Crawls GitHub for SKILL.md files, ranks them and writes discovered-skills.json and DISCOVERED.md
"""

import os
import sys
import logging

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from consolidator.inventory import main

logger = logging.getLogger(__name__)


if __name__ == '__main__':
    try:
        main()
    except Exception as e:
        logger.error(f"Consolidation failed: {e}")
        sys.exit(1)
