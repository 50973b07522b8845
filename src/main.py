#!/usr/bin/env python3
"""
Gmail Triage Rules Engine - Main entry point
"""
import argparse
import json
import logging
import os
import sys

# Add the parent directory to Python path for imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import structlog
from dotenv import load_dotenv

from src.database import (
    DebugLogRepository,
    MarkerRepository,
    RuleRepository,
    SenderScoreStore,
    SummaryRepository,
    get_db_session,
    init_db,
)
from src.gmail import GmailClient, get_gmail_service, get_user_email
from src.rules import EngineConfig, RulesConfig, RulesEngine, build_context
from src.rules.actions import ActionExecutor
from src.rules.schema import LINK_CONDITION_TYPES
from src.rules.sinks import BrowserUrlOpener, LoggingNotificationSink, NavigationRecorder
from src.summarizer import OllamaSummarizer

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = structlog.get_logger()

logging.getLogger('googleapiclient.discovery').setLevel(logging.WARNING)
logging.getLogger('httpx').setLevel(logging.WARNING)


def import_rules(rule_store: RuleRepository, rules_file: str) -> RulesConfig:
    """Replace stored rules with the rules in a JSON export file"""
    try:
        with open(rules_file, 'r') as f:
            rules_config = RulesConfig.model_validate(json.load(f))
        count = rule_store.import_rules(rules_config)
        logger.info("Rules imported", count=count, file=rules_file)
        return rules_config
    except Exception as e:
        logger.error("Error importing rules", file=rules_file, error=str(e))
        raise


def parse_args():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Gmail Triage Rules Engine')
    parser.add_argument('--max-emails', type=int, help='Maximum number of unread emails to process')
    parser.add_argument('--rules-file', help='Import rules from a JSON export before processing')
    parser.add_argument('--seed-examples', action='store_true', help='Create the disabled example rules')
    parser.add_argument('--debug', action='store_true', help='Record a rules debug log for each email')
    parser.add_argument('--stats', action='store_true', help='Print rule statistics and exit')
    return parser.parse_args()


def build_engine(db, gmail_client: GmailClient, config: EngineConfig):
    """Wire the rules engine to its database and Gmail collaborators"""
    scoring_store = SenderScoreStore(db)
    navigation = NavigationRecorder()
    executor = ActionExecutor(
        config=config,
        scoring_store=scoring_store,
        mail_client=gmail_client,
        summary_generator=OllamaSummarizer(),
        tab_persistence=SummaryRepository(db),
        marker_store=MarkerRepository(db),
        notification_sink=LoggingNotificationSink(),
        navigation_sink=navigation,
        url_opener=BrowserUrlOpener(),
    )
    engine = RulesEngine(
        RuleRepository(db),
        action_executor=executor,
        debug_log=DebugLogRepository(db, retention_days=config.debug_retention_days),
        config=config,
    )
    return engine, scoring_store, navigation


def needs_full_message(rules) -> bool:
    """Whether any rule reads links or summarizes, which a metadata fetch cannot serve"""
    for rule in rules:
        if any(condition.type in LINK_CONDITION_TYPES for condition in rule.conditions):
            return True
        if any(action.type == 'request_summary' for action in rule.actions):
            return True
    return False


def process_message(engine: RulesEngine, gmail_client: GmailClient, scoring_store, msg_id: str,
                    full_message: bool = False):
    """Evaluate rules on the message metadata, loading content only when rules need it"""
    message = gmail_client.get_message(msg_id, format='full' if full_message else 'metadata')
    if not message:
        logger.warning("Could not fetch message, skipping", message_id=msg_id)
        return []

    email = gmail_client.message_to_email(message)
    results = engine.execute_rules(build_context(email, scoring_store))

    if msg_id in engine.pending:
        full = gmail_client.get_message(msg_id)
        if not full:
            logger.warning("Could not load content, dropping deferred rules", message_id=msg_id)
            engine.clear_pending(msg_id)
            return []
        loaded = gmail_client.message_to_email(full)
        results = engine.resolve_pending(msg_id, loaded.body, loaded.html_body)

    return results


def main():
    """Main entry point for the Gmail Triage Rules Engine"""
    try:
        args = parse_args()
        load_dotenv()

        config = EngineConfig.from_env()
        if args.debug:
            config.debug_mode = True

        logger.info("Starting Gmail Triage Rules Engine...")
        init_db()

        with get_db_session() as db:
            rule_store = RuleRepository(db)

            if args.rules_file:
                import_rules(rule_store, args.rules_file)
            if args.seed_examples:
                rule_store.create_example_rules()
            if args.stats:
                logger.info("Rule statistics", **rule_store.statistics())
                return

            service = get_gmail_service()
            user_email = get_user_email(service)
            if not user_email:
                logger.error("Failed to get user email")
                return
            logger.info("Authenticated with Gmail", user=user_email)

            gmail_client = GmailClient(service)
            engine, scoring_store, navigation = build_engine(db, gmail_client, config)

            full_message = needs_full_message(rule_store.list_enabled())
            messages = gmail_client.list_unread(max_total=args.max_emails)
            logger.info(f"Found {len(messages)} unread messages to process")

            for msg in messages:
                results = process_message(engine, gmail_client, scoring_store, msg['id'], full_message)
                fired = [r.rule_name for r in results if r.matched]
                failed = [a.error for r in results for a in r.action_results if not a.success]
                logger.info(
                    "Processed email",
                    message_id=msg['id'],
                    rules_checked=len(results),
                    rules_fired=fired,
                    action_errors=failed,
                    navigation=navigation.drain(),
                )

            logger.info("Email processing completed", pending=engine.pending_count())
    except Exception as e:
        logger.error("Error processing emails", error=str(e))
        raise


if __name__ == "__main__":
    main()
