"""Tests for scoring, tiers, categories and duplicate detection."""

from dataclasses import asdict
from datetime import datetime, timedelta, timezone

import pytest

from consolidator.skill_ranker import (
    assign_tier,
    categorize_skill,
    jaccard_similarity,
    rank_all,
    rank_skill,
    score_completeness,
    score_quality,
    score_repo_signals,
    score_uniqueness,
)

NOW = datetime(2026, 10, 18, tzinfo=timezone.utc)

RICH_BODY = """## Use When
Use this skill when you need to convert documents between formats.

## Do not use
Do not use this skill for images.

## Instructions
1. Read the input file
2. Convert it

```js
convert(input, output)
```

See references/formats.md for details.

## Safety
Never overwrite the source file.
""" + "Extra detail. " * 60


@pytest.mark.parametrize("score,tier", [
    (100, "★★★"), (75, "★★★"), (74, "★★"), (50, "★★"), (49, "★"), (25, "★"), (24, "⬡"), (0, "⬡"),
])
def test_assign_tier_boundaries(score, tier):
    assert assign_tier(score) == tier


def test_jaccard_properties():
    a = ["pdf", "merge", "tools"]
    b = ["pdf", "split"]
    assert jaccard_similarity(a, b) == jaccard_similarity(b, a) == 0.25
    assert jaccard_similarity(a, a) == 1
    assert jaccard_similarity([], b) == 0
    assert jaccard_similarity(["x", "x"], ["x"]) == 1


def test_completeness_scenario_with_empty_catalog(make_skill):
    skill = make_skill(
        skill_id="foo-skill",
        name="Foo",
        description="A" * 30,
        content="## Use When\n" + "Details. " * 10 + "\n## Instructions\nStep one.\n```js\ncode\n```",
        tags=["x"],
    )
    ranked = rank_skill(skill, [], now=NOW)
    assert ranked.breakdown.completeness >= 5 + 5 + 3 + 4 + 3 + 2
    assert ranked.breakdown.uniqueness == 25
    assert not ranked.is_duplicate
    assert ranked.duplicate_of is None


def test_completeness_name_equal_to_id_earns_nothing(make_skill):
    skill = make_skill(skill_id="pdf", name="pdf")
    assert score_completeness(skill) == 0


def test_completeness_short_description_partial_credit(make_skill):
    assert score_completeness(make_skill(skill_id="x", name="x", description="short")) == 2


def test_completeness_is_capped(make_skill):
    skill = make_skill(name="Converter", description="Convert documents between many formats",
                       content=RICH_BODY, tags=["docs"])
    assert score_completeness(skill) == 25


def test_uniqueness_exact_id_collision(make_skill):
    skill = make_skill(skill_id="pdf-tools", name="Totally different", description="Nothing alike")
    existing = [{'id': 'pdf-tools', 'name': 'PDF', 'description': 'pdf helpers'}]
    assert score_uniqueness(skill, existing) == (0, True, 'pdf-tools')


def test_uniqueness_bands(make_skill):
    skill = make_skill(skill_id="new", name="alpha beta gamma delta", description="")

    def against(words):
        return score_uniqueness(skill, [{'id': 'old', 'name': words, 'description': ''}])

    assert against("alpha beta gamma delta") == (3, True, 'old')
    # 3 of 4 shared -> 0.75
    assert against("alpha beta gamma") == (3, True, 'old')
    # 3 shared out of 5 -> 0.6
    assert against("alpha beta gamma epsilon") == (10, False, 'old')
    # 2 shared out of 5 -> 0.4
    assert against("alpha beta zeta") == (18, False, None)
    assert against("omega") == (25, False, None)


def test_duplicate_names_across_batch(make_skill):
    first = make_skill(skill_id="pdf-a", name="PDF Toolkit", description="Merge and split PDF files")
    second = make_skill(skill_id="pdf-b", name="PDF Toolkit", description="Merge and split PDF files")
    ranked = {r.id: r for r in rank_all([second], [asdict(first)], now=NOW)}
    assert ranked["pdf-b"].breakdown.uniqueness <= 3
    assert ranked["pdf-b"].is_duplicate
    assert ranked["pdf-b"].duplicate_of == "pdf-a"


def test_quality_rich_document(make_skill):
    skill = make_skill(description="D" * 120, content=RICH_BODY)
    # 5 desc + 4 body + 4 code + 4 sections + 3 references + 2 safety + 2 clean parse
    assert score_quality(skill) == 24


def test_quality_parse_errors_cost_points(make_skill):
    clean = make_skill(content="text")
    broken = make_skill(content="text", parse_errors=["Missing YAML frontmatter"])
    assert score_quality(clean) - score_quality(broken) == 2


def test_repo_signals_tiers(make_skill):
    skill = make_skill(stars=600, forks=150, pushed_at=(NOW - timedelta(days=10)).isoformat(),
                       repo_description="Skills")
    assert score_repo_signals(skill, now=NOW) == 8 + 5 + 7 + 2

    modest = make_skill(stars=12, forks=5, pushed_at="2025-12-01T00:00:00Z")
    assert score_repo_signals(modest, now=NOW) == 3 + 3 + 3

    stale = make_skill(stars=1, forks=1, pushed_at="2020-01-01T00:00:00Z")
    assert score_repo_signals(stale, now=NOW) == 2


def test_categorize_first_rule_wins(make_skill):
    # "security" and "kubernetes" both match; security is listed first
    skill = make_skill(skill_id="k8s-audit", name="Kubernetes security audit")
    assert categorize_skill(skill) == "security"


def test_categorize_uses_tags_and_defaults(make_skill):
    assert categorize_skill(make_skill(skill_id="x", name="Thing", tags=["pytest", "tdd"])) == "testing"
    assert categorize_skill(make_skill(skill_id="poetry", name="Write poems")) == "general"


def test_rank_all_invariants_and_order(make_skill):
    skills = [
        make_skill(skill_id="b-skill", name="Beta", description="Beta helper"),
        make_skill(skill_id="a-skill", name="Alpha", description="Alpha helper"),
        make_skill(skill_id="rich", name="Converter", description="Convert documents between many formats",
                   content=RICH_BODY, tags=["docs"], stars=600, forks=150,
                   pushed_at="2026-10-01T00:00:00Z", repo_description="Skills"),
    ]
    existing = [{'id': 'a-skill', 'name': 'Alpha', 'description': 'Alpha helper'}]
    ranked = rank_all(skills, existing, now=NOW)

    assert ranked[0].id == "rich"
    assert ranked[0].tier == "★★★"
    for record in ranked:
        b = record.breakdown
        assert record.score == b.completeness + b.uniqueness + b.quality + b.repo_signals
        assert all(0 <= part <= 25 for part in (b.completeness, b.uniqueness, b.quality, b.repo_signals))
        assert 0 <= record.score <= 100
        assert record.tier == assign_tier(record.score)
    for current, following in zip(ranked, ranked[1:]):
        assert current.score >= following.score
        if current.score == following.score:
            assert current.id <= following.id


def test_rank_all_ties_sorted_by_id(make_skill):
    skills = [make_skill(skill_id=i, name=i) for i in ("zeta", "alpha", "mid")]
    assert [r.id for r in rank_all(skills, [], now=NOW)] == ["alpha", "mid", "zeta"]


def test_ranked_record_serializes_camel_case(make_skill):
    record = rank_skill(make_skill(), [], now=NOW).to_dict()
    assert set(record['breakdown']) == {'completeness', 'uniqueness', 'quality', 'repoSignals'}
    assert 'isDuplicate' in record and 'duplicateOf' in record
    assert record['source']['pushedAt'] is None
