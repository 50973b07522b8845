"""
Gmail API client for email operations
"""
import base64
from typing import Dict, List, Optional
import logging

from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from src.rules.schema import CONTENT_NOT_LOADED, EmailContent

logger = logging.getLogger(__name__)


def decode_body(data: Optional[str]) -> str:
    """Decode a base64url encoded message body"""
    if not data:
        return ''
    padded = data + '=' * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode('ascii')).decode('utf-8', errors='replace')
    except (ValueError, UnicodeEncodeError) as e:
        logger.warning(f"Could not decode message body: {e}")
        return ''


class GmailClient:
    """Gmail API client for email operations"""

    def __init__(self, service: Resource):
        self.service = service
        self.user_id = 'me'

    def list_messages(self, query: str = None, max_results: int = None, page_token: str = None) -> Dict:
        """List messages in the user's mailbox"""
        try:
            response = self.service.users().messages().list(
                userId=self.user_id,
                q=query,
                maxResults=max_results,
                pageToken=page_token
            ).execute()
            return {
                'messages': response.get('messages', []),
                'nextPageToken': response.get('nextPageToken')
            }
        except HttpError as e:
            logger.error(f"Error listing messages: {e}")
            return {'messages': [], 'nextPageToken': None}

    def list_unread(self, max_total: int = None) -> List[Dict]:
        """List unread inbox messages, handling pagination"""
        messages = []
        page_token = None

        while True:
            remaining = max_total - len(messages) if max_total else None
            response = self.list_messages(
                query='is:unread in:inbox',
                max_results=remaining,
                page_token=page_token
            )
            messages.extend(response['messages'])
            page_token = response.get('nextPageToken')

            logger.info(f"Fetched {len(messages)} unread messages so far...")

            if not page_token or (max_total and len(messages) >= max_total):
                break

        return messages[:max_total] if max_total else messages

    def get_message(self, msg_id: str, format: str = 'full') -> Optional[Dict]:
        """Get a specific message by ID"""
        try:
            return self.service.users().messages().get(
                userId=self.user_id,
                id=msg_id,
                format=format
            ).execute()
        except HttpError as e:
            logger.error(f"Error getting message {msg_id}: {e}")
            return None

    def mark_as_read(self, msg_id: str) -> bool:
        """Mark a message as read"""
        logger.debug(f"Attempting to mark message {msg_id} as read")
        try:
            result = self.service.users().messages().modify(
                userId=self.user_id,
                id=msg_id,
                body={'removeLabelIds': ['UNREAD']}
            ).execute()
        except HttpError as e:
            logger.error(f"HTTP error marking message {msg_id} as read: {e.resp.status} - {e.content}")
            return False

        success = 'UNREAD' not in result.get('labelIds', [])
        logger.debug(f"Mark as read {'succeeded' if success else 'failed'}")
        return success

    def delete_email(self, msg_id: str) -> bool:
        """Permanently delete a message"""
        try:
            self.service.users().messages().delete(userId=self.user_id, id=msg_id).execute()
        except HttpError as e:
            logger.error(f"HTTP error deleting message {msg_id}: {e.resp.status} - {e.content}")
            return False
        logger.debug(f"Deleted message {msg_id}")
        return True

    def trash_email(self, msg_id: str) -> bool:
        """Move a message to the trash"""
        try:
            result = self.service.users().messages().trash(userId=self.user_id, id=msg_id).execute()
        except HttpError as e:
            logger.error(f"HTTP error trashing message {msg_id}: {e.resp.status} - {e.content}")
            return False
        return 'TRASH' in result.get('labelIds', ['TRASH'])

    def message_to_email(self, message: Dict) -> EmailContent:
        """Convert a Gmail message to the email seen by rules"""
        payload = message.get('payload', {})
        headers = {h['name'].lower(): h['value'] for h in payload.get('headers', [])}

        if 'body' in payload or 'parts' in payload:
            body, html_body = self._get_message_content(payload)
        else:
            # Metadata-only fetch: content arrives later
            body, html_body = CONTENT_NOT_LOADED, None

        return EmailContent(
            id=message['id'],
            thread_id=message.get('threadId'),
            subject=headers.get('subject', ''),
            from_address=headers.get('from', ''),
            to=headers.get('to', ''),
            date=headers.get('date', ''),
            body=body,
            html_body=html_body,
            snippet=message.get('snippet'),
            is_read='UNREAD' not in message.get('labelIds', []),
        )

    def _get_message_content(self, payload: Dict) -> tuple[str, Optional[str]]:
        """Extract the plain text and HTML content from a message payload"""
        plain, html = [], []

        def walk(part: Dict):
            mime_type = part.get('mimeType', '')
            data = part.get('body', {}).get('data')
            if data and mime_type == 'text/html':
                html.append(decode_body(data))
            elif data and (mime_type == 'text/plain' or not part.get('parts')):
                plain.append(decode_body(data))
            for child in part.get('parts', []):
                walk(child)

        walk(payload)
        html_body = '\n'.join(html) or None
        return '\n'.join(plain) or (html_body or ''), html_body
