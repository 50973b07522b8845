"""
Tests for the rule script sandbox
"""
import unittest
from unittest.mock import MagicMock

from factories import make_context

from src.rules.sandbox import ScriptError, ScriptSandbox, extract_regex


class TestScriptSandbox(unittest.TestCase):
    def setUp(self):
        self.opener = MagicMock()
        self.sandbox = ScriptSandbox(open_url=self.opener)
        self.context = make_context(
            subject='Order #12345 confirmed',
            links=[('https://shop.com/track/1', 'shop.com')],
            score=42,
        )

    def test_last_expression_is_the_result(self):
        code = """
        # read some context
        senderInfo.email
        email.subject.upper()
        """
        self.assertEqual(self.sandbox.run(code, self.context, {}), 'ORDER #12345 CONFIRMED')

    def test_return_stops_the_script(self):
        code = "return senderScore * 2\nset_var('unreached', 1)"
        variables = {}
        self.assertEqual(self.sandbox.run(code, self.context, variables), 84)
        self.assertEqual(variables, {})

    def test_set_var_and_extract_regex(self):
        code = "set_var('order', utils.extractRegex(email.subject, '#(\\\\d+)', 1))"
        variables = {}
        self.sandbox.run(code, self.context, variables)
        self.assertEqual(variables, {'order': '12345'})

    def test_window_open_uses_opener(self):
        code = "window.open(extractedLinks[0].url)"
        self.assertTrue(self.sandbox.run(code, self.context, {}))
        self.opener.assert_called_once_with('https://shop.com/track/1', '_blank')

    def test_console_logs(self):
        with self.assertLogs('src.rules.sandbox', level='INFO') as logs:
            self.sandbox.run('console.log("from", senderInfo.email)', self.context, {})
        self.assertIn('[Rule Script] from a@b.com', logs.output[0])

    def test_no_access_to_builtins_or_private_attributes(self):
        for code in ('open("/etc/passwd")', '__import__("os")', 'email.__class__', 'x = 1'):
            with self.subTest(code=code):
                with self.assertRaises(ScriptError):
                    self.sandbox.run(code, self.context, {})

    def test_assignment_is_rejected(self):
        with self.assertRaises(ScriptError) as raised:
            self.sandbox.run('x = 1\nx', self.context, {})
        self.assertIn('Line 1', str(raised.exception))

        with self.assertRaises(ScriptError):
            self.sandbox.run('(y := 2)', self.context, {})

    def test_error_reports_line_number(self):
        with self.assertRaises(ScriptError) as raised:
            self.sandbox.run('1 + 1\nundefined_name', self.context, {})
        self.assertIn('Line 2', str(raised.exception))

    def test_window_open_without_opener(self):
        sandbox = ScriptSandbox()
        with self.assertRaises(ScriptError):
            sandbox.run('window.open("https://example.com")', self.context, {})


class TestExtractRegex(unittest.TestCase):

    def test_groups(self):
        self.assertEqual(extract_regex('order #12345 confirmed', r'#(\d+)', 1), '12345')
        self.assertEqual(extract_regex('order #12345 confirmed', r'#(\d+)'), '#12345')

    def test_index_selects_among_all_matches_first(self):
        self.assertEqual(extract_regex('a1 b2 c3', r'[a-z]\d', 2), 'c3')
        self.assertEqual(extract_regex('id=7 id=9', r'id=(\d)', 1), 'id=9')
        self.assertEqual(extract_regex('id=7', r'id=(\d)', 1), '7')

    def test_no_match_or_bad_group(self):
        self.assertIsNone(extract_regex('nothing here', r'#(\d+)', 1))
        self.assertIsNone(extract_regex('#1', r'#(\d+)', 5))
        self.assertIsNone(extract_regex('#1', r'(', 1))


if __name__ == '__main__':
    unittest.main()
