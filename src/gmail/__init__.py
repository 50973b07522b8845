"""
Gmail API integration: service construction and the mail client used by rule actions
"""
from .auth import get_gmail_service, get_user_email
from .client import GmailClient, decode_body

__all__ = ['get_gmail_service', 'get_user_email', 'GmailClient', 'decode_body']
