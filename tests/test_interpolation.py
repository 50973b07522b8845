"""
Tests for template interpolation
"""
import unittest

from factories import make_context

from src.rules.interpolation import interpolate


class TestInterpolation(unittest.TestCase):

    def test_sender_and_email_references(self):
        context = make_context(sender_name='Alice', subject='Invoice')
        self.assertEqual(
            interpolate('Hello ${senderInfo.name}, re: ${email.subject}', context, {}),
            'Hello Alice, re: Invoice',
        )

    def test_unknown_variable_left_verbatim(self):
        context = make_context()
        self.assertEqual(
            interpolate('value=${variables.missing}', context, {}),
            'value=${variables.missing}',
        )

    def test_variables_and_score(self):
        context = make_context(score=75)
        result = interpolate('#${variables.order} (${senderScore})', context, {'order': '12345'})
        self.assertEqual(result, '#12345 (75)')

    def test_email_fields_accept_camel_and_snake_case(self):
        context = make_context(html_body='<b>hi</b>')
        self.assertEqual(interpolate('${email.htmlBody}|${email.html_body}', context, {}), '<b>hi</b>|<b>hi</b>')
        self.assertEqual(interpolate('${email.from}', context, {}), 'Alice <a@b.com>')

    def test_fallback_alternatives(self):
        named = make_context(sender_name='Alice')
        anonymous = make_context(sender_name=None, sender_email='noreply@x.com')
        template = 'From ${senderInfo.name || senderInfo.email}'
        self.assertEqual(interpolate(template, named, {}), 'From Alice')
        self.assertEqual(interpolate(template, anonymous, {}), 'From noreply@x.com')

    def test_unknown_namespace_and_malformed_references(self):
        context = make_context()
        template = '${window.location} ${email.} ${variables.a.b}'
        self.assertEqual(interpolate(template, context, {'a': 'x'}), template)

    def test_defaults_to_context_variables(self):
        context = make_context(variables={'ticket': 'T-1'})
        self.assertEqual(interpolate('${variables.ticket}', context), 'T-1')

    def test_no_recursive_expansion(self):
        context = make_context()
        result = interpolate('${variables.a}', context, {'a': '${email.subject}'})
        self.assertEqual(result, '${email.subject}')


if __name__ == '__main__':
    unittest.main()
