import asyncio
import unittest
from unittest.mock import patch

from interview_assistant.models.interview import Candidate
from interview_assistant.utils import search
from interview_assistant.utils.algorithms import (
    calculate_text_similarity,
    cosine_similarity,
    jaro_similarity,
    jaro_winkler_similarity,
    levenshtein_distance,
)
from interview_assistant.utils.search import (
    CandidateSearchController,
    CandidateSearchIndex,
    Debouncer,
    LRUCache,
    sort_candidates,
)


def make_candidates():
    return [
        Candidate(
            name="John Smith", email="john.smith@example.com", position="Frontend Developer",
            skills=["React", "TypeScript"], score=0.8, created_at="2024-03-01T10:00:00+00:00",
        ),
        Candidate(
            name="alice Wong", email="alice@example.com", position="Backend Engineer",
            skills=["Python", "Django"], score=None, created_at="2024-01-15T09:00:00+00:00",
        ),
        Candidate(
            name="Bob Martin", email="bob@example.com", position="Full Stack Developer",
            skills=["Node.js", "MongoDB"], score=0.55, created_at="2024-02-10T12:00:00+00:00",
        ),
    ]


class TestSimilarity(unittest.TestCase):

    def test_identical_strings(self):
        for value in ("a", "react", "John Smith"):
            self.assertEqual(jaro_winkler_similarity(value, value), 1.0)

    def test_empty_string(self):
        self.assertEqual(jaro_winkler_similarity("", "react"), 0.0)
        self.assertEqual(jaro_winkler_similarity("react", ""), 0.0)

    def test_known_values(self):
        self.assertAlmostEqual(jaro_similarity("martha", "marhta"), 0.9444, places=3)
        self.assertAlmostEqual(jaro_winkler_similarity("martha", "marhta"), 0.9611, places=3)
        self.assertAlmostEqual(jaro_winkler_similarity("dixon", "dicksonx"), 0.8133, places=3)

    def test_prefix_bonus_only_above_threshold(self):
        # Low base similarity: the shared prefix must not be rewarded
        base = jaro_similarity("abxyz", "abqrstuvw")
        self.assertLess(base, 0.7)
        self.assertEqual(jaro_winkler_similarity("abxyz", "abqrstuvw"), base)

    def test_no_common_characters(self):
        self.assertEqual(jaro_winkler_similarity("abc", "xyz"), 0.0)

    def test_levenshtein(self):
        self.assertEqual(levenshtein_distance("kitten", "sitting"), 3)
        self.assertEqual(levenshtein_distance("", "abc"), 3)
        self.assertEqual(levenshtein_distance("same", "same"), 0)

    def test_cosine(self):
        self.assertAlmostEqual(cosine_similarity("a b c", "a b c"), 1.0)
        self.assertEqual(cosine_similarity("a b", "c d"), 0.0)
        self.assertEqual(cosine_similarity("", "a"), 0.0)

    def test_text_similarity(self):
        self.assertEqual(calculate_text_similarity("", ""), 1.0)
        self.assertAlmostEqual(calculate_text_similarity("closures capture scope", "closures capture scope"), 1.0)
        self.assertLess(calculate_text_similarity("closures capture scope", "database indexing"), 0.5)


class TestLRUCache(unittest.TestCase):

    def test_evicts_least_recently_used(self):
        cache = LRUCache(2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)
        self.assertIn("a", cache)
        self.assertNotIn("b", cache)
        self.assertIn("c", cache)
        self.assertEqual(len(cache), 2)

    def test_invalid_capacity(self):
        with self.assertRaises(ValueError):
            LRUCache(0)


class TestCandidateSearchIndex(unittest.TestCase):

    def setUp(self):
        self.candidates = make_candidates()
        self.index = CandidateSearchIndex(threshold=0.3, cache_size=50)

    def test_blank_query_returns_everything_in_order(self):
        self.assertEqual(self.index.fuzzy_search(self.candidates, ""), self.candidates)
        self.assertEqual(self.index.fuzzy_search(self.candidates, "   "), self.candidates)

    def test_typo_tolerant_match(self):
        results = self.index.fuzzy_search(self.candidates, "Jhon")
        self.assertTrue(results)
        self.assertEqual(results[0].name, "John Smith")

    def test_matches_skills(self):
        results = self.index.fuzzy_search(self.candidates, "django")
        self.assertEqual(results[0].name, "alice Wong")

    def test_no_match_is_empty_not_error(self):
        self.assertEqual(self.index.fuzzy_search(self.candidates, "zzzz"), [])

    def test_repeated_query_hits_cache(self):
        with patch.object(search, "candidate_match_score", wraps=search.candidate_match_score) as scorer:
            first = self.index.fuzzy_search(self.candidates, "Bob")
            calls = scorer.call_count
            second = self.index.fuzzy_search(self.candidates, "bob")
            self.assertEqual(scorer.call_count, calls)
        self.assertEqual([c.id for c in first], [c.id for c in second])

    def test_cache_keyed_by_collection_size(self):
        self.index.fuzzy_search(self.candidates, "bob")
        extra = Candidate(name="Bobby Tables", email="bobby@example.com")
        results = self.index.fuzzy_search(self.candidates + [extra], "bob")
        self.assertIn("Bobby Tables", [c.name for c in results])


class TestSortCandidates(unittest.TestCase):

    def setUp(self):
        self.candidates = make_candidates()

    def test_sort_by_name_is_case_insensitive(self):
        names = [c.name for c in sort_candidates(self.candidates, "name", "asc")]
        self.assertEqual(names, ["alice Wong", "Bob Martin", "John Smith"])

    def test_sort_by_score_treats_missing_as_zero(self):
        names = [c.name for c in sort_candidates(self.candidates, "score", "desc")]
        self.assertEqual(names, ["John Smith", "Bob Martin", "alice Wong"])

    def test_sort_by_date(self):
        names = [c.name for c in sort_candidates(self.candidates, "date", "asc")]
        self.assertEqual(names, ["alice Wong", "Bob Martin", "John Smith"])

    def test_unknown_key(self):
        with self.assertRaises(ValueError):
            sort_candidates(self.candidates, "salary")


class TestCandidateSearchController(unittest.TestCase):

    def setUp(self):
        self.candidates = make_candidates()

    def test_debounced_search_applies_last_term(self):
        async def run():
            controller = CandidateSearchController(lambda: self.candidates, debounce_seconds=0.01)
            controller.update_search("B")
            controller.update_search("Bo")
            controller.update_search("Bob")
            self.assertEqual(controller.search_term, "")
            await asyncio.sleep(0.05)
            return controller

        controller = asyncio.run(run())
        self.assertEqual(controller.search_term, "Bob")
        self.assertIn("Bob Martin", [c.name for c in controller.results()])

    def test_stats_and_clear(self):
        controller = CandidateSearchController(lambda: self.candidates)
        controller.apply_search("zzzz")
        self.assertEqual(controller.stats(), {"total": 3, "filtered": 0, "has_active_filter": True})
        controller.clear_search()
        self.assertEqual(controller.stats(), {"total": 3, "filtered": 3, "has_active_filter": False})

    def test_default_sort_is_newest_first(self):
        controller = CandidateSearchController(lambda: self.candidates)
        self.assertEqual(controller.results()[0].name, "John Smith")
        controller.set_sort("name", "asc")
        self.assertEqual(controller.results()[0].name, "alice Wong")


class TestDebouncer(unittest.TestCase):

    def test_flush_runs_pending_call(self):
        calls = []

        async def run():
            debounced = Debouncer(calls.append, delay=10)
            debounced("x")
            self.assertTrue(debounced.is_pending)
            debounced.flush()
            self.assertFalse(debounced.is_pending)

        asyncio.run(run())
        self.assertEqual(calls, ["x"])


if __name__ == "__main__":
    unittest.main()
