"""
Building rule contexts from parsed emails
"""
import html
import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

from .interfaces import ScoringStore
from .schema import CONTENT_NOT_LOADED, EmailContent, ExtractedLink, RuleContext, SenderInfo

logger = logging.getLogger(__name__)

SENDER_PATTERN = re.compile(r'^(.+?)\s*<(.+)>$')
URL_PATTERN = re.compile(r'(?:https?|ftp)://[^\s<>"\'()\[\]]+', re.IGNORECASE)
HREF_PATTERN = re.compile(
    r'<a\s[^>]*?href\s*=\s*["\']([^"\']+)["\'][^>]*>(.*?)</a>',
    re.IGNORECASE | re.DOTALL,
)
TAG_PATTERN = re.compile(r'<[^>]+>')
TRAILING_PUNCTUATION = '.,;:!?'


def parse_sender(from_field: str) -> SenderInfo:
    """Split a From header into display name and address"""
    from_field = (from_field or '').strip()
    match = SENDER_PATTERN.match(from_field)
    if match:
        name = match.group(1).strip().replace('"', '').replace("'", '')
        return SenderInfo(email=match.group(2).strip(), name=name or None)
    return SenderInfo(email=from_field)


def _link(url: str, text: str = '') -> Optional[ExtractedLink]:
    url = url.rstrip(TRAILING_PUNCTUATION)
    parsed = urlparse(url)
    if parsed.scheme.lower() not in ('http', 'https', 'ftp') or not parsed.hostname:
        return None
    return ExtractedLink(url=url, text=text or url, domain=parsed.hostname)


def extract_links(text: Optional[str], html_body: Optional[str] = None) -> List[ExtractedLink]:
    """Extract unique links from a plain text body and optional HTML body"""
    links: List[ExtractedLink] = []
    seen = set()

    def add(link: Optional[ExtractedLink]):
        if link is not None and link.url not in seen:
            seen.add(link.url)
            links.append(link)

    if html_body and html_body != CONTENT_NOT_LOADED:
        for href, label in HREF_PATTERN.findall(html_body):
            label = html.unescape(TAG_PATTERN.sub('', label)).strip()
            add(_link(html.unescape(href.strip()), label))

    if text and text != CONTENT_NOT_LOADED:
        for url in URL_PATTERN.findall(text):
            add(_link(url))

    return links


def build_context(email: EmailContent, scoring_store: Optional[ScoringStore] = None) -> RuleContext:
    """Derive sender info, links and score for an email"""
    sender_info = parse_sender(email.from_address)
    sender_score = 0
    if scoring_store is not None:
        try:
            sender_score = scoring_store.get_score(sender_info.email) or 0
        except Exception as e:
            logger.error(f"Failed to look up sender score for {sender_info.email}: {e}")
    return RuleContext(
        email=email,
        sender_info=sender_info,
        extracted_links=extract_links(email.body, email.html_body),
        sender_score=sender_score,
    )
