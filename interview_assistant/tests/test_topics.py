import random
import unittest

from interview_assistant.models.interview import Difficulty, QuestionType
from interview_assistant.utils.topics import (
    BEHAVIORAL_TOPICS,
    DEFAULT_TOPICS,
    QUESTION_PLAN,
    SKILL_TOPICS,
    QuestionSlot,
    TopicSelector,
    topics_for_skills,
)


class TestQuestionPlan(unittest.TestCase):

    def test_two_questions_per_difficulty_in_order(self):
        self.assertEqual([(slot.difficulty, slot.type) for slot in QUESTION_PLAN], [
            (Difficulty.EASY, QuestionType.TECHNICAL),
            (Difficulty.EASY, QuestionType.TECHNICAL),
            (Difficulty.MEDIUM, QuestionType.CODING),
            (Difficulty.MEDIUM, QuestionType.TECHNICAL),
            (Difficulty.HARD, QuestionType.TECHNICAL),
            (Difficulty.HARD, QuestionType.BEHAVIORAL),
        ])

    def test_only_behavioral_slot_has_fixed_topics(self):
        fixed = [slot for slot in QUESTION_PLAN if slot.fixed_topics]
        self.assertEqual(len(fixed), 1)
        self.assertEqual(list(fixed[0].fixed_topics), BEHAVIORAL_TOPICS)


class TestTopicsForSkills(unittest.TestCase):

    def test_keyword_inside_skill_name(self):
        self.assertEqual(topics_for_skills(["Node.js"], Difficulty.EASY), SKILL_TOPICS["node"]["easy"])
        self.assertEqual(topics_for_skills(["PostgreSQL database"], Difficulty.HARD), SKILL_TOPICS["database"]["hard"])

    def test_matches_are_combined_without_duplicates(self):
        topics = topics_for_skills(["React", "react native", "AWS"], Difficulty.MEDIUM)
        self.assertEqual(topics, SKILL_TOPICS["react"]["medium"] + SKILL_TOPICS["aws"]["medium"])

    def test_unmatched_skills_use_generic_topics(self):
        self.assertEqual(topics_for_skills(["COBOL"], Difficulty.MEDIUM), DEFAULT_TOPICS["medium"])
        self.assertEqual(topics_for_skills([], Difficulty.HARD), DEFAULT_TOPICS["hard"])

    def test_generic_topics_are_a_copy(self):
        topics = topics_for_skills([], Difficulty.EASY)
        topics.append("Extra")
        self.assertNotIn("Extra", DEFAULT_TOPICS["easy"])


class TestTopicSelector(unittest.TestCase):

    def test_draws_without_replacement_then_repeats(self):
        topics = ["Closures", "Event Loop", "Promises"]
        selector = TopicSelector(random.Random(11))
        drawn = [selector.pick(topics) for _ in range(3)]
        self.assertEqual(sorted(drawn), sorted(topics))

        # Exhausted: any topic may come back
        self.assertIn(selector.pick(topics), topics)

    def test_seeded_selectors_agree(self):
        topics = DEFAULT_TOPICS["medium"]
        first = TopicSelector(random.Random(5))
        second = TopicSelector(random.Random(5))
        self.assertEqual(
            [first.pick(topics) for _ in range(3)],
            [second.pick(topics) for _ in range(3)],
        )

    def test_fixed_topics_override_skills(self):
        selector = TopicSelector(random.Random(1))
        slot = QuestionSlot(Difficulty.HARD, QuestionType.BEHAVIORAL, fixed_topics=BEHAVIORAL_TOPICS)
        self.assertEqual(selector.topic_for(slot, ["React"]), BEHAVIORAL_TOPICS[0])

    def test_skill_topics_for_slot(self):
        selector = TopicSelector(random.Random(2))
        slot = QuestionSlot(Difficulty.EASY, QuestionType.TECHNICAL)
        self.assertIn(selector.topic_for(slot, ["Python"]), SKILL_TOPICS["python"]["easy"])

    def test_empty_topic_list(self):
        with self.assertRaises(ValueError):
            TopicSelector().pick([])


if __name__ == "__main__":
    unittest.main()
