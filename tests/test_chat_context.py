"""Tests for chat context assembly."""

import json

from copilot.core.chat_context import (
    SYSTEM_PROMPT,
    build_context,
    resolve_pinned_company,
)
from copilot.core.retrieval import Candidate, Provenance
from tests.fakes.fake_store import FakeCompanyStore, make_company


def _candidates(*slugs, provenance=Provenance.VECTOR):
    return [
        Candidate(make_company(slug), 0.1 * i, provenance) for i, slug in enumerate(slugs)
    ]


def test_pinned_first_and_deduplicated():
    pinned = make_company("acme")
    context = build_context(_candidates("beta", "acme", "gamma"), pinned, max_companies=30)

    slugs = [c.slug for c in context.companies]
    assert slugs == ["acme", "beta", "gamma"]
    assert context.companies[0].match == "selected"
    assert context.has_pinned is True


def test_context_cap_includes_pinned():
    pinned = make_company("acme")
    context = build_context(_candidates("b", "c", "d", "e"), pinned, max_companies=3)

    assert [c.slug for c in context.companies] == ["acme", "b", "c"]


def test_repeated_candidate_slugs_collapse():
    context = build_context(_candidates("beta", "beta", "gamma"), None, max_companies=30)
    assert [c.slug for c in context.companies] == ["beta", "gamma"]


def test_match_field_carries_provenance():
    context = build_context(
        _candidates("beta", provenance=Provenance.FALLBACK), None, max_companies=30
    )
    assert context.companies[0].match == "fallback"


def test_user_prompt_contains_context_json_and_question():
    context = build_context(_candidates("beta"), make_company("acme"), max_companies=30)

    prompt = context.render_user_prompt("What does acme do?")

    assert prompt.endswith("Question: What does acme do?")
    payload = json.loads(prompt[prompt.index("{") : prompt.rindex("}") + 1])
    assert [c["slug"] for c in payload["companies"]] == ["acme", "beta"]
    assert payload["companies"][0]["description"] == "acme builds things"


def test_citations_follow_context_order():
    context = build_context(_candidates("beta", "gamma"), make_company("acme"), 30)

    sources = context.citations()

    assert [s.slug for s in sources] == ["acme", "beta", "gamma"]
    assert sources[0].radical_primary_category == "AI"


def test_system_prompt_states_grounding_rules():
    assert "slug" in SYSTEM_PROMPT
    assert "primary category" in SYSTEM_PROMPT
    assert "general knowledge" in SYSTEM_PROMPT
    assert '"fallback"' in SYSTEM_PROMPT


def test_resolve_pinned_company_variants():
    store = FakeCompanyStore(companies=[make_company("acme")])

    assert resolve_pinned_company(store, "acme").slug == "acme"
    assert resolve_pinned_company(store, "does-not-exist") is None
    assert resolve_pinned_company(store, None) is None


def test_resolve_pinned_company_store_failure_degrades():
    store = FakeCompanyStore(companies=[make_company("acme")], fail=True)
    assert resolve_pinned_company(store, "acme") is None
