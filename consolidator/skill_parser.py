"""
SKILL.md file parser
Splits a skill document into frontmatter and body and builds discovered skill records
"""

import re
import json
import yaml
import jsonschema
from pathlib import Path
from typing import List, Optional, Tuple

from .config import GITHUB_WEB_BASE
from .models import DiscoveredPath, DiscoveredSkill, RepoInfo, SkillSource

SCHEMA_PATH = Path(__file__).parent / "schema" / "skill.schema.json"

FRONTMATTER_RE = re.compile(r'^\ufeff?---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|$)', re.DOTALL)
TOKEN_RE = re.compile(r'[a-z0-9]+')

STOP_WORDS = {
    'a', 'an', 'and', 'are', 'as', 'at', 'be', 'by', 'for', 'from', 'how', 'in', 'into',
    'is', 'it', 'its', 'of', 'on', 'or', 'that', 'the', 'this', 'to', 'with', 'your',
}


def tokenize(text: str) -> List[str]:
    """Lowercase alphanumeric tokens of two or more characters, stop words removed"""
    return [
        token for token in TOKEN_RE.findall((text or '').lower())
        if len(token) > 1 and token not in STOP_WORDS
    ]


def unique(values) -> list:
    """Drop repeats, keeping first occurrence order"""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def skill_id_from_path(path: str) -> str:
    """skills/my-skill/SKILL.md -> my-skill; SKILL.md -> SKILL"""
    parts = [part for part in path.strip('/').split('/') if part]
    if len(parts) > 1:
        return parts[-2]
    if not parts:
        return 'unknown'
    return re.sub(r'\.md$', '', parts[0], flags=re.IGNORECASE)


class SkillParser:
    """Parse SKILL.md files into discovered skill records"""

    def __init__(self, schema_path: Optional[Path] = None):
        self.schema_path = schema_path or SCHEMA_PATH
        self.schema = self._load_schema()

    def _load_schema(self) -> dict:
        """Load JSON Schema"""
        with open(self.schema_path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def parse_frontmatter(self, content: str) -> Tuple[dict, str, List[str]]:
        """
        Extract YAML frontmatter from SKILL.md
        Returns: (data, body, errors)
        """
        content = content or ''
        match = FRONTMATTER_RE.match(content)
        if not match:
            return {}, content, ['Missing YAML frontmatter']

        body = content[match.end():]
        try:
            # Use safe_load to prevent YAML deserialization attacks
            data = yaml.safe_load(match.group(1))
        except yaml.YAMLError as e:
            return {}, body, [f'Invalid YAML frontmatter: {e}']

        if data is None:
            data = {}
        if not isinstance(data, dict):
            return {}, body, ['Frontmatter must be a mapping']

        errors = []
        validator = jsonschema.Draft7Validator(self.schema)
        for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path]):
            location = '.'.join(str(p) for p in error.path)
            errors.append(f'{location}: {error.message}' if location else error.message)

        return data, body, errors

    @staticmethod
    def extract_tags(raw) -> List[str]:
        """Normalize frontmatter tags given as a list or a comma-separated string"""
        if isinstance(raw, str):
            raw = raw.split(',')
        if not isinstance(raw, list):
            return []
        return unique(tag for tag in (str(t).strip() for t in raw) if tag)

    def parse(self, content: str, item: DiscoveredPath, repo_info: Optional[RepoInfo] = None) -> DiscoveredSkill:
        """Parse SKILL.md content found at a discovered path"""
        repo_info = repo_info or RepoInfo()
        data, body, errors = self.parse_frontmatter(content)
        skill_id = skill_id_from_path(item.path)

        name = data.get('name')
        description = data.get('description')

        return DiscoveredSkill(
            id=skill_id,
            name=name.strip() if isinstance(name, str) else skill_id,
            description=description.strip() if isinstance(description, str) else '',
            tags=self.extract_tags(data.get('tags')),
            content=body or '',
            source=SkillSource(
                repo=item.repo,
                url=item.html_url or f"{GITHUB_WEB_BASE}/{item.repo}",
                stars=repo_info.stars,
                forks=repo_info.forks,
                pushed_at=repo_info.pushed_at,
                path=item.path,
                description=repo_info.description,
            ),
            parse_errors=errors,
        )
