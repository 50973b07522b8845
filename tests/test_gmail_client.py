"""
Tests for the Gmail API client wrapper
"""
import base64
import unittest
from unittest.mock import MagicMock

from googleapiclient.errors import HttpError

import factories  # noqa: F401

from src.gmail.client import GmailClient, decode_body
from src.rules.schema import CONTENT_NOT_LOADED


def encode(text):
    return base64.urlsafe_b64encode(text.encode('utf-8')).decode('ascii').rstrip('=')


def http_error(status=404):
    return HttpError(MagicMock(status=status, reason='Not Found'), b'')


class TestGmailClient(unittest.TestCase):
    def setUp(self):
        self.service = MagicMock()
        self.messages = self.service.users.return_value.messages.return_value
        self.client = GmailClient(self.service)

    def test_list_unread_paginates(self):
        self.messages.list.return_value.execute.side_effect = [
            {'messages': [{'id': '1'}, {'id': '2'}], 'nextPageToken': 'page2'},
            {'messages': [{'id': '3'}]},
        ]

        messages = self.client.list_unread()

        self.assertEqual([m['id'] for m in messages], ['1', '2', '3'])
        first_call = self.messages.list.call_args_list[0]
        self.assertEqual(first_call.kwargs['q'], 'is:unread in:inbox')

    def test_list_unread_respects_max_total(self):
        self.messages.list.return_value.execute.return_value = {
            'messages': [{'id': '1'}, {'id': '2'}], 'nextPageToken': 'more',
        }
        self.assertEqual(len(self.client.list_unread(max_total=2)), 2)
        self.assertEqual(self.messages.list.return_value.execute.call_count, 1)

    def test_list_messages_http_error(self):
        self.messages.list.return_value.execute.side_effect = http_error(500)
        self.assertEqual(self.client.list_messages(), {'messages': [], 'nextPageToken': None})

    def test_mark_as_read(self):
        self.messages.modify.return_value.execute.return_value = {'labelIds': ['INBOX']}

        self.assertTrue(self.client.mark_as_read('m1'))
        self.messages.modify.assert_called_once_with(
            userId='me', id='m1', body={'removeLabelIds': ['UNREAD']}
        )

    def test_mark_as_read_failures(self):
        self.messages.modify.return_value.execute.return_value = {'labelIds': ['INBOX', 'UNREAD']}
        self.assertFalse(self.client.mark_as_read('m1'))

        self.messages.modify.return_value.execute.side_effect = http_error()
        self.assertFalse(self.client.mark_as_read('m1'))

    def test_delete_email(self):
        self.assertTrue(self.client.delete_email('m1'))
        self.messages.delete.assert_called_once_with(userId='me', id='m1')

        self.messages.delete.return_value.execute.side_effect = http_error()
        self.assertFalse(self.client.delete_email('m1'))

    def test_trash_email(self):
        self.messages.trash.return_value.execute.return_value = {'labelIds': ['TRASH']}
        self.assertTrue(self.client.trash_email('m1'))

        self.messages.trash.return_value.execute.side_effect = http_error()
        self.assertFalse(self.client.trash_email('m1'))

    def test_get_message_http_error(self):
        self.messages.get.return_value.execute.side_effect = http_error()
        self.assertIsNone(self.client.get_message('m1'))

    def test_message_to_email_multipart(self):
        message = {
            'id': 'm1',
            'threadId': 't1',
            'labelIds': ['INBOX', 'UNREAD'],
            'snippet': 'Hello',
            'payload': {
                'mimeType': 'multipart/alternative',
                'headers': [
                    {'name': 'Subject', 'value': 'Invoice'},
                    {'name': 'From', 'value': 'Alice <a@b.com>'},
                ],
                'parts': [
                    {'mimeType': 'text/plain', 'body': {'data': encode('Hello plain')}},
                    {'mimeType': 'text/html', 'body': {'data': encode('<p>Hello html</p>')}},
                ],
            },
        }

        email = self.client.message_to_email(message)

        self.assertEqual(email.subject, 'Invoice')
        self.assertEqual(email.from_address, 'Alice <a@b.com>')
        self.assertEqual(email.body, 'Hello plain')
        self.assertEqual(email.html_body, '<p>Hello html</p>')
        self.assertFalse(email.is_read)
        self.assertTrue(email.content_loaded)

    def test_metadata_message_is_not_loaded(self):
        message = {'id': 'm1', 'payload': {'headers': [{'name': 'Subject', 'value': 'Hi'}]}}
        email = self.client.message_to_email(message)
        self.assertEqual(email.body, CONTENT_NOT_LOADED)
        self.assertFalse(email.content_loaded)

    def test_decode_body(self):
        self.assertEqual(decode_body(encode('café ✓')), 'café ✓')
        self.assertEqual(decode_body(None), '')


if __name__ == '__main__':
    unittest.main()
