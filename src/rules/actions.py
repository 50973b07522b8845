"""
Action execution for matched rules
"""
import logging
import re
from typing import Any, Dict, Optional

from .config import EngineConfig
from .interfaces import (
    MailClient,
    MarkerStore,
    NavigationSink,
    NotificationSink,
    ScoringStore,
    SummaryGenerator,
    TabPersistence,
    UrlOpener,
)
from .interpolation import interpolate
from .sandbox import ScriptSandbox
from .schema import ActionResult, RuleAction, RuleContext

logger = logging.getLogger(__name__)


class ActionExecutor:
    """Performs the side effect of a single rule action"""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        scoring_store: Optional[ScoringStore] = None,
        mail_client: Optional[MailClient] = None,
        summary_generator: Optional[SummaryGenerator] = None,
        tab_persistence: Optional[TabPersistence] = None,
        marker_store: Optional[MarkerStore] = None,
        notification_sink: Optional[NotificationSink] = None,
        navigation_sink: Optional[NavigationSink] = None,
        url_opener: Optional[UrlOpener] = None,
    ):
        self.config = config or EngineConfig()
        self.scoring_store = scoring_store
        self.mail_client = mail_client
        self.summary_generator = summary_generator
        self.tab_persistence = tab_persistence
        self.marker_store = marker_store
        self.notification_sink = notification_sink
        self.navigation_sink = navigation_sink
        self.url_opener = url_opener
        self.sandbox = ScriptSandbox(open_url=self._open_in_browser)
        self._handlers = {
            'javascript_code': self._run_script,
            'open_url': self._open_url,
            'save_variable': self._save_variable,
            'log_message': self._log_message,
            'add_score': self._add_score,
            'mark_email': self._mark_email,
            'notify': self._notify,
            'delete_email': self._delete_email,
            'mark_as_read': self._mark_as_read,
            'request_summary': self._request_summary,
            'goto_next_email': self._goto_next_email,
            'goto_previous_email': self._goto_previous_email,
        }

    def execute(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> ActionResult:
        """Execute one action; failures are reported in the result"""
        result = ActionResult(action_id=action.id, type=action.type)
        try:
            handler = self._handlers.get(action.type)
            if handler is None:
                raise ValueError(f"Unknown action type: {action.type}")
            result.result = handler(action, context, variables)
            result.success = True
        except Exception as e:
            logger.error(f"Action {action.type} ({action.id}) failed: {e}")
            result.success = False
            result.error = str(e)
            return result

        produced = result.result.get('variables') if isinstance(result.result, dict) else None
        if isinstance(produced, dict):
            variables.update(produced)
        return result

    def _require(self, collaborator, name: str):
        if collaborator is None:
            raise RuntimeError(f"No {name} configured")
        return collaborator

    def _open_in_browser(self, url: str, target: str) -> None:
        self._require(self.url_opener, 'URL opener').open(url, target)

    def _run_script(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Any:
        params = action.typed_parameters()
        return self.sandbox.run(params.code, context, variables)

    def _open_url(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        params = action.typed_parameters()
        url = interpolate(params.url, context, variables)
        self._open_in_browser(url, params.target or '_blank')
        return {'openedUrl': url}

    def _save_variable(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        params = action.typed_parameters()
        return {'variables': {params.variable_name: self._variable_value(params, context, variables)}}

    def _variable_value(self, params, context: RuleContext, variables: Dict[str, Any]) -> Optional[str]:
        if params.direct_value:
            return interpolate(params.direct_value, context, variables)
        if not params.regex_pattern:
            return None

        email = context.email
        if params.source == 'subject':
            source_text = email.subject
        elif params.source == 'from':
            source_text = email.from_address
        elif params.source == 'urls':
            source_text = ' '.join(link.url for link in context.extracted_links)
        else:
            source_text = email.html_body or email.body or ''

        try:
            match = re.search(params.regex_pattern, source_text or '')
        except re.error as e:
            logger.error(f"Regex variable extraction error: {e}")
            return None
        if not match:
            return None
        try:
            value = match.group(params.group_index)
        except IndexError:
            return None
        return value or None

    def _log_message(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        params = action.typed_parameters()
        message = interpolate(params.message, context, variables)
        logger.info(f"[Rule Action] {message}")
        return {'message': message}

    def _add_score(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        params = action.typed_parameters()
        points = params.points or 0
        if points > 0:
            self._require(self.scoring_store, 'scoring store').add_points(
                context.sender_info.email,
                context.sender_info.name,
                context.email.id,
                points,
            )
        return {'pointsAdded': points if points > 0 else 0}

    def _mark_email(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        params = action.typed_parameters()
        marker = params.marker or 'default'
        self._require(self.marker_store, 'marker store').append_marker(marker, context.email.id)
        return {'marker': marker, 'emailId': context.email.id}

    def _notify(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        params = action.typed_parameters()
        title = interpolate(params.title, context, variables)
        body = interpolate(params.body, context, variables)
        self._require(self.notification_sink, 'notification sink').notify(title, body)
        return {'notificationShown': True, 'title': title, 'body': body}

    def _delete_email(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        success = self._require(self.mail_client, 'mail client').delete_email(context.email.id)
        if not success:
            raise RuntimeError('Failed to delete email')
        logger.info(f"[Rule Action] Deleted email: {context.email.subject}")
        return {'deleted': True, 'emailId': context.email.id}

    def _mark_as_read(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        success = self._require(self.mail_client, 'mail client').mark_as_read(context.email.id)
        if not success:
            raise RuntimeError('Failed to mark email as read')
        logger.info(f"[Rule Action] Marked email as read: {context.email.subject}")
        return {'markedAsRead': True, 'emailId': context.email.id}

    def _request_summary(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        email = context.email
        if not email.content_loaded:
            raise RuntimeError('Email content not loaded')
        tab_persistence = self._require(self.tab_persistence, 'summary storage')
        key = f"email:{email.id}"
        label = f"Email: {email.subject}"

        if self.config.save_for_later_mode:
            record = {
                'url': key,
                'summary': 'Email saved for later review',
                'loading': False,
                'savedForLater': True,
            }
            tab_persistence.save_link_summary(key, record, email.body, label)
            logger.info(f"[Rule Action] Saved email for later: {email.subject}")
            result = {'savedForLater': True, 'emailId': email.id}
        else:
            summary = self._require(self.summary_generator, 'summary generator').summarize(email.body)
            record = {
                'url': key,
                'summary': summary,
                'loading': False,
                'modelUsed': 'short',
            }
            tab_persistence.save_link_summary(key, record, email.body, label)
            logger.info(f"[Rule Action] Generated summary for email: {email.subject}")
            result = {'summarized': True, 'summary': summary, 'emailId': email.id}

        if self.scoring_store is not None:
            try:
                self.scoring_store.add_points(context.sender_info.email, context.sender_info.name, email.id)
            except Exception as e:
                logger.error(f"Failed to add scoring points for email summary: {e}")
        return result

    def _navigate(self, direction: str) -> Dict[str, Any]:
        self._require(self.navigation_sink, 'navigation sink').emit(direction)
        logger.info(f"[Rule Action] Navigating to {direction} email")
        return {'navigatedTo': direction}

    def _goto_next_email(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        return self._navigate('next')

    def _goto_previous_email(self, action: RuleAction, context: RuleContext, variables: Dict[str, Any]) -> Dict[str, Any]:
        return self._navigate('previous')
