"""
Skill ranker
Scores discovered skills on four 0-25 factors, assigns tiers and categories
and flags duplicates of skills already in the catalog
"""

import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from .config import CATEGORY_RULES, DEFAULT_CATEGORY, TIERS
from .models import DiscoveredSkill, RankedSkill, ScoreBreakdown
from .skill_parser import tokenize

MAX_FACTOR_SCORE = 25

USE_WHEN_RE = re.compile(r'use\s+(this\s+)?skill\s+when|##\s*use\s+when', re.IGNORECASE)
DO_NOT_USE_RE = re.compile(r'do\s+not\s+use', re.IGNORECASE)
INSTRUCTIONS_RE = re.compile(r'##\s*(instructions|steps|how to)', re.IGNORECASE)
CODE_FENCE_RE = re.compile(r'```')
SECTION_RE = re.compile(r'^##\s', re.MULTILINE)
RESOURCE_DIR_RE = re.compile(r'references?/|examples?/|resources?/', re.IGNORECASE)
SAFETY_RE = re.compile(r'##\s*safety', re.IGNORECASE)

# (threshold, score, is_duplicate, keep_match): checked top to bottom, strictly greater than
SIMILARITY_BANDS = [
    (0.7, 3, True, True),
    (0.5, 10, False, True),
    (0.3, 18, False, False),
]


def jaccard_similarity(tokens_a: Iterable[str], tokens_b: Iterable[str]) -> float:
    """Compute Jaccard similarity between two token collections"""
    set_a, set_b = set(tokens_a), set(tokens_b)
    if not set_a or not set_b:
        return 0.0
    intersection = len(set_a & set_b)
    union = len(set_a | set_b)
    return intersection / union if union else 0.0


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def score_completeness(skill: DiscoveredSkill) -> int:
    """
    Completeness (0-25)
    Name, description, body, use-when/do-not-use blocks, instructions, tags.
    """
    score = 0

    # A meaningful name, not just the directory id
    if skill.name and skill.name != skill.id and len(skill.name) > 2:
        score += 5

    if skill.description and len(skill.description) > 20:
        score += 5
    elif skill.description:
        score += 2

    body = skill.content or ''
    if len(body) > 100:
        score += 3

    if USE_WHEN_RE.search(body):
        score += 4

    if DO_NOT_USE_RE.search(body):
        score += 3

    if INSTRUCTIONS_RE.search(body):
        score += 3

    if skill.tags:
        score += 2

    return min(score, MAX_FACTOR_SCORE)


def score_uniqueness(skill: DiscoveredSkill, existing_skills: Iterable[Dict]) -> Tuple[int, bool, Optional[str]]:
    """
    Uniqueness (0-25)
    Compares against existing catalog skills to penalize duplicates.
    Returns: (score, is_duplicate, duplicate_of)
    """
    skill_tokens = tokenize(f"{skill.name} {skill.description}")

    max_similarity = 0.0
    best_match = None

    for existing in existing_skills or []:
        if existing.get('id') == skill.id:
            return 0, True, existing.get('id')

        existing_tokens = tokenize(f"{existing.get('name') or ''} {existing.get('description') or ''}")
        similarity = jaccard_similarity(skill_tokens, existing_tokens)
        if similarity > max_similarity:
            max_similarity = similarity
            best_match = existing.get('id')

    for threshold, score, is_duplicate, keep_match in SIMILARITY_BANDS:
        if max_similarity > threshold:
            return score, is_duplicate, best_match if keep_match else None

    return MAX_FACTOR_SCORE, False, None


def score_quality(skill: DiscoveredSkill) -> int:
    """
    Quality (0-25)
    Description depth, body length, code examples, sections, references.
    """
    score = 0
    body = skill.content or ''

    desc_len = len(skill.description or '')
    if desc_len > 100:
        score += 5
    elif desc_len > 50:
        score += 3
    elif desc_len > 20:
        score += 1

    if len(body) > 2000:
        score += 5
    elif len(body) > 1000:
        score += 4
    elif len(body) > 500:
        score += 3
    elif len(body) > 200:
        score += 2

    if CODE_FENCE_RE.search(body):
        score += 4

    section_count = len(SECTION_RE.findall(body))
    if section_count >= 4:
        score += 4
    elif section_count >= 2:
        score += 2
    elif section_count >= 1:
        score += 1

    if RESOURCE_DIR_RE.search(body):
        score += 3

    if SAFETY_RE.search(body):
        score += 2

    if not skill.parse_errors:
        score += 2

    return min(score, MAX_FACTOR_SCORE)


def score_repo_signals(skill: DiscoveredSkill, now: Optional[datetime] = None) -> int:
    """
    Repo signals (0-25)
    GitHub stars, forks, recency of the last push, repo description.
    """
    source = skill.source
    if source is None:
        return 0

    score = 0
    stars = source.stars or 0
    if stars >= 500:
        score += 8
    elif stars >= 100:
        score += 6
    elif stars >= 50:
        score += 5
    elif stars >= 10:
        score += 3
    elif stars >= 1:
        score += 1

    forks = source.forks or 0
    if forks >= 100:
        score += 5
    elif forks >= 20:
        score += 4
    elif forks >= 5:
        score += 3
    elif forks >= 1:
        score += 1

    pushed = _parse_timestamp(source.pushed_at) if source.pushed_at else None
    if pushed:
        now = now or datetime.now(timezone.utc)
        months_ago = (now - pushed).total_seconds() / (60 * 60 * 24 * 30)
        if months_ago < 1:
            score += 7
        elif months_ago < 3:
            score += 6
        elif months_ago < 6:
            score += 5
        elif months_ago < 12:
            score += 3
        elif months_ago < 24:
            score += 1

    if source.description:
        score += 2

    return min(score, MAX_FACTOR_SCORE)


def assign_tier(score: int) -> str:
    """Tier label for a total score"""
    for tier, minimum in TIERS:
        if score >= minimum:
            return tier
    return TIERS[-1][0]


def categorize_skill(skill: DiscoveredSkill) -> str:
    """First category rule with a keyword in the skill's tokens wins"""
    haystack = set(tokenize(
        f"{skill.id} {skill.name or ''} {skill.description or ''} {' '.join(skill.tags or [])}"
    ))

    for category, keywords in CATEGORY_RULES:
        if any(keyword in haystack for keyword in keywords):
            return category

    return DEFAULT_CATEGORY


def rank_skill(skill: DiscoveredSkill, existing_skills: Iterable[Dict], now: Optional[datetime] = None) -> RankedSkill:
    """Rank a single discovered skill against the existing catalog"""
    uniqueness, is_duplicate, duplicate_of = score_uniqueness(skill, existing_skills)
    breakdown = ScoreBreakdown(
        completeness=score_completeness(skill),
        uniqueness=uniqueness,
        quality=score_quality(skill),
        repo_signals=score_repo_signals(skill, now),
    )
    total = breakdown.total

    return RankedSkill(
        id=skill.id,
        name=skill.name,
        description=skill.description,
        category=categorize_skill(skill),
        tags=list(skill.tags or []),
        source=skill.source,
        score=total,
        tier=assign_tier(total),
        is_duplicate=is_duplicate,
        duplicate_of=duplicate_of,
        breakdown=breakdown,
    )


def rank_all(discovered: Iterable[DiscoveredSkill], existing_skills: Iterable[Dict],
             now: Optional[datetime] = None) -> List[RankedSkill]:
    """Rank a batch of discovered skills, best first, ties broken by id"""
    existing_skills = list(existing_skills or [])
    ranked = [rank_skill(skill, existing_skills, now) for skill in discovered]
    ranked.sort(key=lambda s: (-s.score, s.id))
    return ranked
