import pytest

from contributor_stats import (
    normalize_name, levenshtein_distance, similarity_score, AliasResolver,
    build_alias_resolver, AnalysisConfig, analyze_log,
)


# ============================================================================
# NAME NORMALIZATION
# ============================================================================

@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, ""),
        ("", ""),
        ("JohnDoe@EXAMPLE.COM", "johndoe"),
        ("  Jane   O'Neil ", "jane oneil"),
        ("first.last-name_x", "first.last-name_x"),
        ("Zoë Ålund", "zo lund"),
        ("@example.com", ""),
    ],
)
def test_normalize_name(raw, expected):
    assert normalize_name(raw) == expected

def test_normalize_name_drops_non_latin_scripts(log_builder):
    # only ASCII letters survive, so such names share the empty key
    assert normalize_name("Иван Петров") == ""
    assert normalize_name("李雷") == ""

    text = log_builder(
        [
            ("h1", "Иван Петров", "", "", [(1, 0, "a")]),
            ("h2", "李雷", "", "", [(1, 0, "b")]),
        ]
    )
    result = analyze_log(text, AnalysisConfig(group_by="name", similarity_threshold=None))
    assert list(result.contributors) == [""]
    assert result.contributors[""]["commits"] == 2

def test_normalize_name_is_idempotent():
    for raw in ("John  Smith", "a.b@c.d", "Mixed-Case_Name"):
        once = normalize_name(raw)
        assert normalize_name(once) == once


# ============================================================================
# SIMILARITY
# ============================================================================

def test_levenshtein_distance():
    assert levenshtein_distance("", "") == 0
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("abc", "") == 3
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("flaw", "lawn") == 2
    # case-sensitive
    assert levenshtein_distance("A", "a") == 1

def test_levenshtein_symmetry():
    pairs = [("john smith", "jon smith"), ("abc", "cba"), ("", "x")]
    for a, b in pairs:
        assert levenshtein_distance(a, b) == levenshtein_distance(b, a)

def test_similarity_score():
    assert similarity_score("", "") == 1.0
    assert similarity_score(None, None) == 1.0
    assert similarity_score("", "abc") == 0.0
    assert similarity_score("Alice", "alice") == 1.0
    assert similarity_score("john smith", "jon smith") == pytest.approx(0.9)

def test_similarity_score_bounds():
    for a, b in [("a", "b"), ("abc", "abd"), ("short", "a much longer string")]:
        assert 0.0 <= similarity_score(a, b) <= 1.0
        assert similarity_score(a, b) == similarity_score(b, a)


# ============================================================================
# ALIAS RESOLVER
# ============================================================================

class TestAliasResolverIdentity:
    """No aliases and no fuzzy matching: every key stands alone"""

    def test_pass_through(self):
        resolver = AliasResolver()
        assert resolver.is_identity
        assert resolver("john smith") == "john smith"
        assert resolver("jon smith") == "jon smith"
        assert resolver.canonical_identities == ["john smith", "jon smith"]
        assert resolver.fuzzy_merges == 0

    def test_fuzzy_enabled_is_not_identity(self):
        assert not AliasResolver(similarity_threshold=0.85).is_identity
        assert not AliasResolver({"a": "b"}).is_identity


class TestAliasResolverFuzzy:
    """Greedy first-seen fuzzy merging"""

    def test_merge_at_threshold(self):
        resolver = AliasResolver(similarity_threshold=0.88)
        assert resolver.resolve("john smith") == "john smith"
        assert resolver.resolve("jon smith") == "john smith"
        assert resolver.fuzzy_merges == 1

    def test_below_threshold_stays_separate(self):
        resolver = AliasResolver(similarity_threshold=0.95)
        resolver.resolve("john smith")
        assert resolver.resolve("jon smith") == "jon smith"
        assert resolver.canonical_identities == ["john smith", "jon smith"]

    def test_resolution_is_stable_within_run(self):
        resolver = AliasResolver(similarity_threshold=0.85)
        first = resolver.resolve("jon smith")
        resolver.resolve("john smith")
        assert resolver.resolve("jon smith") == first

    def test_best_candidate_wins(self):
        resolver = AliasResolver(similarity_threshold=0.88)
        resolver.resolve("abcdefghijklmnopqrxy")
        resolver.resolve("zbcdefghijklmnopqrst")
        assert len(resolver.canonical_identities) == 2
        assert resolver.resolve("abcdefghijklmnopqrst") == "zbcdefghijklmnopqrst"

    def test_tie_goes_to_earliest_registered(self):
        resolver = AliasResolver(similarity_threshold=0.85)
        resolver.resolve("xxxxxxxxab")
        resolver.resolve("xxxxxxxxcd")
        assert resolver.resolve("xxxxxxxxad") == "xxxxxxxxab"

    def test_order_dependent(self):
        keys = ["aaaaaaaaaa", "aaaaaaaabb", "aaaaaabbbb"]

        forward = AliasResolver(similarity_threshold=0.75)
        assert [forward.resolve(k) for k in keys] == ["aaaaaaaaaa", "aaaaaaaaaa", "aaaaaabbbb"]

        backward = AliasResolver(similarity_threshold=0.75)
        assert [backward.resolve(k) for k in reversed(keys)] == [
            "aaaaaabbbb",
            "aaaaaabbbb",
            "aaaaaaaaaa",
        ]

    def test_zero_threshold_merges_everything(self):
        resolver = AliasResolver(similarity_threshold=0.0)
        resolver.resolve("alice")
        assert resolver.resolve("zz") == "alice"

    def test_fresh_resolver_per_build(self):
        first = build_alias_resolver(None, 0.85)
        first.resolve("john smith")
        second = build_alias_resolver(None, 0.85)
        assert second.resolve("jon smith") == "jon smith"


class TestAliasResolverConfig:
    """Explicit alias configuration forms"""

    def test_groups_list(self):
        resolver = AliasResolver([["Alice Developer", "alice@x.com", "ally"]])
        assert resolver.configured
        assert resolver.resolve("ally") == "alice developer"
        assert resolver.resolve("alice") == "alice developer"
        assert resolver.explicit_hits == 2

    def test_groups_object(self):
        resolver = AliasResolver({"groups": [["bob", "Robert"]]})
        assert resolver.resolve("robert") == "bob"

    def test_map(self):
        resolver = AliasResolver({"map": {"Bobby": "bob@y.com"}})
        assert resolver.resolve("bobby") == "bob"

    def test_flat_map(self):
        resolver = AliasResolver({"Alice Developer": "alice@x.com", "ignored": 42})
        assert resolver.resolve("alice developer") == "alice"
        assert resolver.resolve("ignored") == "ignored"

    def test_alias_matched_on_raw_name_or_email(self):
        resolver = AliasResolver({"map": {"A. Dev": "alice"}})
        assert resolver.resolve("somebody", name="A. Dev", email="") == "alice"

    def test_pattern_entries(self):
        resolver = AliasResolver([["alice", "/^alice\\b/i", "/@alice-corp\\.com$/"]])
        assert resolver.resolve("alice smith", name="ALICE Smith") == "alice"
        assert resolver.resolve("ceo", name="CEO", email="ceo@alice-corp.com") == "alice"
        assert resolver.resolve("bob", name="Bob", email="bob@y.com") == "bob"

    def test_invalid_pattern_is_reported(self):
        resolver = AliasResolver([["alice", "/[unclosed/", "/ok/q"]])
        assert len(resolver.errors) == 2
        assert resolver.patterns == []
        assert resolver.resolve("alice") == "alice"

    def test_canonical_details_override(self):
        resolver = AliasResolver(
            {
                "groups": [["Alice Developer", "alice@x.com"]],
                "canonical": {"alice@x.com": {"name": "Alice D.", "email": "alice@corp.com"}},
            }
        )
        canonical = resolver.resolve("alice developer", "Alice Developer", "alice@x.com")
        assert canonical == "alice"
        details = resolver.details(canonical)
        assert details.name == "Alice D."
        assert details.email == "alice@corp.com"

    def test_partial_canonical_override(self):
        resolver = AliasResolver({"canonical": {"bob": {"name": "Robert"}}})
        resolver.resolve("bob", "Bob", "bob@y.com")
        assert resolver.details("bob").to_dict() == {"name": "Robert", "email": "bob@y.com"}

    def test_explicit_alias_beats_fuzzy(self):
        resolver = AliasResolver({"map": {"jon smith": "jonathan"}}, similarity_threshold=0.85)
        resolver.resolve("john smith")
        assert resolver.resolve("jon smith") == "jonathan"
        assert resolver.fuzzy_merges == 0

    def test_unusable_config(self):
        resolver = AliasResolver("not a config")
        assert not resolver.configured
        assert resolver.errors
        assert resolver.resolve("x") == "x"

    def test_empty_map_target_is_reported(self):
        resolver = AliasResolver({"map": {"someone": "@@@"}})
        assert resolver.errors
        assert resolver.alias_map == {}

    def test_overlapping_groups_form_one_class(self):
        resolver = AliasResolver({"groups": [["alice", "ally"], ["ally", "a.dev"]]})
        assert [resolver.resolve(k) for k in ("alice", "ally", "a.dev")] == [
            "alice",
            "alice",
            "alice",
        ]

    def test_later_group_joins_two_classes(self):
        resolver = AliasResolver([["a1", "b1"], ["c1", "d1"], ["d1", "b1"]])
        assert {resolver.resolve(k) for k in ("a1", "b1", "c1", "d1")} == {"a1"}

    def test_merged_class_prefers_canonical_override(self):
        resolver = AliasResolver(
            {
                "groups": [["alice", "ally"], ["ally", "Alice Dev"]],
                "canonical": {"Alice Dev": {"name": "Alice Developer"}},
            }
        )
        assert resolver.resolve("alice") == "alice dev"
        assert resolver.resolve("ally") == "alice dev"
        assert resolver.details("alice dev").name == "Alice Developer"

    def test_overlapping_groups_merge_in_analysis(self, log_builder):
        text = log_builder(
            [
                ("h1", "alice", "", "", [(1, 0, "a")]),
                ("h2", "a.dev", "", "", [(1, 0, "b")]),
            ]
        )
        config = AnalysisConfig(
            group_by="name",
            similarity_threshold=None,
            alias_config={"groups": [["alice", "ally"], ["ally", "a.dev"]]},
        )
        result = analyze_log(text, config)
        assert {k: v["commits"] for k, v in result.contributors.items()} == {"alice": 2}


class TestCanonicalDetails:
    """Display details inferred while resolving"""

    def test_first_seen_details(self):
        resolver = AliasResolver()
        resolver.resolve("alice", "Alice Developer", "alice@x.com")
        resolver.resolve("alice", "alice", "ALICE@x.com")
        assert resolver.details("alice").to_dict() == {
            "name": "Alice Developer",
            "email": "alice@x.com",
        }

    def test_email_local_part_fallback(self):
        resolver = AliasResolver()
        resolver.resolve("carol", "", "carol@z.com")
        assert resolver.details("carol").name == "carol"
        resolver.resolve("carol", "Carol King", "carol@z.com")
        assert resolver.details("carol").name == "Carol King"

    def test_unknown_identity(self):
        assert AliasResolver().details("nobody").to_dict() == {"name": "", "email": ""}


# ============================================================================
# END TO END
# ============================================================================

def test_fuzzy_names_merge_in_analysis(log_builder):
    text = log_builder(
        [
            ("h1", "John Smith", "", "2024-01-01T00:00:00+00:00", [(1, 0, "a")]),
            ("h2", "Jon Smith", "", "2024-01-02T00:00:00+00:00", [(1, 0, "b")]),
        ]
    )
    merged = analyze_log(text, AnalysisConfig(group_by="name"))
    assert list(merged.contributors) == ["john smith"]
    assert merged.contributors["john smith"]["commits"] == 2

    split = analyze_log(text, AnalysisConfig(group_by="name", similarity_threshold=None))
    assert list(split.contributors) == ["john smith", "jon smith"]

def test_alias_groups_merge_in_analysis(scenario_log):
    config = AnalysisConfig(
        group_by="name",
        similarity_threshold=None,
        alias_config=[["Alice Developer", "alice"]],
    )
    result = analyze_log(scenario_log, config)
    assert result.contributors["alice developer"]["commits"] == 2
    assert result.contributors["alice developer"]["name"] == "Alice Developer"
    assert result.total_commits == 3
