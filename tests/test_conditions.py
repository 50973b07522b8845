"""
Tests for condition evaluation
"""
import unittest
from unittest.mock import MagicMock

from factories import condition, make_context, unloaded_context

from src.rules.conditions import CONTENT_SKIPPED_ERROR, ConditionEvaluator
from src.rules.schema import CONTENT_NOT_LOADED, RuleCondition


class TestConditionEvaluator(unittest.TestCase):
    def setUp(self):
        self.scoring_store = MagicMock()
        self.scoring_store.get_score.return_value = 0
        self.evaluator = ConditionEvaluator(self.scoring_store)

    def test_actual_values_by_type(self):
        context = make_context(
            subject='Weekly digest',
            sender_email='news@shop.com',
            sender_name='Shop News',
            html_body='<p>Big sale</p>',
            links=[('https://shop.com/sale', 'shop.com'), ('https://cdn.example.org/x', 'cdn.example.org')],
        )
        test_cases = [
            ('sender_email', 'news@shop.com'),
            ('sender_name', 'Shop News'),
            ('subject', 'Weekly digest'),
            ('content', '<p>Big sale</p>'),
            ('content_regex', '<p>Big sale</p>'),
            ('url_contains', 'https://shop.com/sale https://cdn.example.org/x'),
            ('link_domain', 'shop.com cdn.example.org'),
            ('has_links', True),
        ]
        for condition_type, expected_actual in test_cases:
            with self.subTest(condition_type=condition_type):
                result = self.evaluator.evaluate(condition(condition_type, 'exists'), context)
                self.assertEqual(result.actual_value, expected_actual)
                self.assertTrue(result.matched)
                self.assertIsNone(result.error)

    def test_missing_sender_name_is_empty_string(self):
        context = make_context(sender_name=None)
        result = self.evaluator.evaluate(condition('sender_name', 'not_exists'), context)
        self.assertEqual(result.actual_value, '')
        self.assertTrue(result.matched)

    def test_content_falls_back_to_plain_body(self):
        context = make_context(body='plain text only', html_body=None)
        result = self.evaluator.evaluate(condition('content', 'contains', 'plain'), context)
        self.assertTrue(result.matched)

    def test_sender_score_comes_from_scoring_store(self):
        self.scoring_store.get_score.return_value = 75
        context = make_context(sender_email='vip@b.com', score=0)
        result = self.evaluator.evaluate(condition('sender_score', 'greater_than', 50), context)
        self.scoring_store.get_score.assert_called_once_with('vip@b.com')
        self.assertEqual(result.actual_value, 75)
        self.assertTrue(result.matched)

    def test_unknown_sender_scores_zero(self):
        self.scoring_store.get_score.return_value = None
        result = self.evaluator.evaluate(condition('sender_score', 'equals', 0), make_context())
        self.assertEqual(result.actual_value, 0)
        self.assertTrue(result.matched)

    def test_without_scoring_store_uses_context_score(self):
        evaluator = ConditionEvaluator()
        result = evaluator.evaluate(condition('sender_score', 'less_than', -20), make_context(score=-30))
        self.assertTrue(result.matched)

    def test_has_links_false_without_links(self):
        result = self.evaluator.evaluate(condition('has_links', 'equals', True), make_context())
        self.assertIs(result.actual_value, False)
        self.assertFalse(result.matched)

    def test_content_not_loaded_is_skipped_not_failed(self):
        for condition_type in ('content', 'content_regex'):
            with self.subTest(condition_type=condition_type):
                result = self.evaluator.evaluate(
                    condition(condition_type, 'not_exists'), unloaded_context()
                )
                self.assertFalse(result.matched)
                self.assertEqual(result.error, CONTENT_SKIPPED_ERROR)

    def test_sentinel_in_html_body_is_also_skipped(self):
        context = make_context(body='', html_body=CONTENT_NOT_LOADED)
        result = self.evaluator.evaluate(condition('content', 'contains', 'x'), context)
        self.assertEqual(result.error, CONTENT_SKIPPED_ERROR)

    def test_case_insensitive_condition(self):
        context = make_context(subject='URGENT: reply needed')
        result = self.evaluator.evaluate(
            condition('subject', 'contains', 'urgent', case_sensitive=False), context
        )
        self.assertTrue(result.matched)
        result = self.evaluator.evaluate(condition('subject', 'contains', 'urgent'), context)
        self.assertFalse(result.matched)

    def test_unknown_condition_type_reports_error(self):
        bogus = RuleCondition.model_construct(id='c9', type='attachment_size', operator='greater_than',
                                              value=10, case_sensitive=None)
        result = self.evaluator.evaluate(bogus, make_context())
        self.assertFalse(result.matched)
        self.assertIn('Unknown condition type: attachment_size', result.error)

    def test_scoring_store_failure_is_contained(self):
        self.scoring_store.get_score.side_effect = RuntimeError('db down')
        result = self.evaluator.evaluate(condition('sender_score', 'greater_than', 1), make_context())
        self.assertFalse(result.matched)
        self.assertEqual(result.error, 'db down')


if __name__ == '__main__':
    unittest.main()
