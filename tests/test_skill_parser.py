"""Tests for SKILL.md parsing and tokenization."""

import pytest

from consolidator.models import DiscoveredPath, RepoInfo
from consolidator.skill_parser import SkillParser, skill_id_from_path, tokenize


@pytest.fixture
def parser():
    return SkillParser()


def make_path(path="skills/pdf-tools/SKILL.md"):
    return DiscoveredPath(
        repo="acme/skills",
        repo_url="https://github.com/acme/skills",
        path=path,
        name="SKILL.md",
        html_url=f"https://github.com/acme/skills/blob/main/{path}",
    )


def test_tokenize_lowercases_and_drops_stop_words():
    assert tokenize("Deploy the Kubernetes cluster, with Helm!") == ["deploy", "kubernetes", "cluster", "helm"]


def test_tokenize_keeps_short_domain_terms():
    assert "ai" in tokenize("AI agents")
    assert "c4" in tokenize("C4 diagrams")


def test_tokenize_empty():
    assert tokenize("") == []
    assert tokenize(None) == []


@pytest.mark.parametrize("path,expected", [
    ("skills/pdf-tools/SKILL.md", "pdf-tools"),
    ("a/b/c/SKILL.md", "c"),
    ("SKILL.md", "SKILL"),
])
def test_skill_id_from_path(path, expected):
    assert skill_id_from_path(path) == expected


def test_parse_frontmatter_clean(parser):
    data, body, errors = parser.parse_frontmatter(
        "---\nname: PDF Tools\ndescription: Work with PDF files\ntags: [pdf, docs]\n---\n# PDF\nBody\n"
    )
    assert data['name'] == "PDF Tools"
    assert body.startswith("# PDF")
    assert errors == []


def test_parse_frontmatter_missing_header(parser):
    data, body, errors = parser.parse_frontmatter("# Just markdown\n")
    assert data == {}
    assert body == "# Just markdown\n"
    assert errors == ["Missing YAML frontmatter"]


def test_parse_frontmatter_invalid_yaml(parser):
    data, body, errors = parser.parse_frontmatter("---\nname: [unclosed\n---\nBody")
    assert data == {}
    assert body == "Body"
    assert errors and errors[0].startswith("Invalid YAML frontmatter")


def test_parse_frontmatter_schema_violations_are_reported(parser):
    data, _, errors = parser.parse_frontmatter("---\nname: 42\n---\nBody")
    assert data == {'name': 42}
    assert any(e.startswith("name:") for e in errors)
    assert any("description" in e for e in errors)


def test_parse_builds_record(parser):
    content = "---\nname: ' PDF Tools '\ndescription: Merge and split PDFs\ntags: pdf, docs, pdf\n---\n## Steps\n"
    info = RepoInfo(stars=10, forks=2, pushed_at="2026-09-01T00:00:00Z", description="Skill pack")
    skill = parser.parse(content, make_path(), info)

    assert skill.id == "pdf-tools"
    assert skill.name == "PDF Tools"
    assert skill.description == "Merge and split PDFs"
    assert skill.tags == ["pdf", "docs"]
    assert skill.content == "## Steps\n"
    assert skill.source.repo == "acme/skills"
    assert skill.source.stars == 10
    assert skill.source.description == "Skill pack"
    assert skill.source.path == "skills/pdf-tools/SKILL.md"
    assert skill.parse_errors == []


def test_parse_keeps_broken_documents(parser):
    skill = parser.parse("no header at all", make_path())
    assert skill.name == "pdf-tools"
    assert skill.description == ""
    assert skill.tags == []
    assert skill.parse_errors == ["Missing YAML frontmatter"]
