"""
Tests for sender parsing, link extraction and context building
"""
import unittest
from unittest.mock import MagicMock

import factories  # noqa: F401

from src.rules.context import build_context, extract_links, parse_sender
from src.rules.schema import CONTENT_NOT_LOADED, EmailContent


class TestParseSender(unittest.TestCase):

    def test_from_header_variants(self):
        test_cases = [
            ('Alice Smith <alice@example.com>', 'alice@example.com', 'Alice Smith'),
            ('"Shop, Inc." <news@shop.com>', 'news@shop.com', 'Shop, Inc.'),
            ('bob@example.com', 'bob@example.com', None),
            ('', '', None),
        ]
        for from_field, email, name in test_cases:
            with self.subTest(from_field=from_field):
                sender = parse_sender(from_field)
                self.assertEqual(sender.email, email)
                self.assertEqual(sender.name, name)


class TestExtractLinks(unittest.TestCase):

    def test_plain_text_urls(self):
        links = extract_links('See https://example.com/a, and http://docs.example.org/b.')
        self.assertEqual([link.url for link in links], ['https://example.com/a', 'http://docs.example.org/b'])
        self.assertEqual([link.domain for link in links], ['example.com', 'docs.example.org'])

    def test_html_anchors_come_first_and_are_deduplicated(self):
        html_body = '<p><a href="https://shop.com/sale">Big <b>sale</b></a></p>'
        links = extract_links('Visit https://shop.com/sale or https://help.shop.com', html_body)
        self.assertEqual([link.url for link in links], ['https://shop.com/sale', 'https://help.shop.com'])
        self.assertEqual(links[0].text, 'Big sale')

    def test_ignores_non_web_links(self):
        html_body = '<a href="mailto:x@y.com">mail</a><a href="javascript:void(0)">js</a>'
        self.assertEqual(extract_links('', html_body), [])

    def test_unloaded_content_has_no_links(self):
        self.assertEqual(extract_links(CONTENT_NOT_LOADED, CONTENT_NOT_LOADED), [])


class TestBuildContext(unittest.TestCase):

    def test_builds_sender_links_and_score(self):
        scoring_store = MagicMock()
        scoring_store.get_score.return_value = 12
        email = EmailContent(id='m1', subject='Hi', from_address='Alice <a@b.com>',
                             body='Link: https://example.com')

        context = build_context(email, scoring_store)

        self.assertEqual(context.sender_info.email, 'a@b.com')
        self.assertEqual(context.sender_info.name, 'Alice')
        self.assertEqual(context.sender_score, 12)
        self.assertEqual(len(context.extracted_links), 1)
        self.assertEqual(context.variables, {})
        scoring_store.get_score.assert_called_once_with('a@b.com')

    def test_score_lookup_failure_defaults_to_zero(self):
        scoring_store = MagicMock()
        scoring_store.get_score.side_effect = RuntimeError('db down')
        email = EmailContent(id='m1', from_address='a@b.com')
        self.assertEqual(build_context(email, scoring_store).sender_score, 0)


if __name__ == '__main__':
    unittest.main()
