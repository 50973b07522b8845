"""
Summary generation for the request_summary rule action
"""
from .ollama import OllamaSummarizer, SummaryError

__all__ = ['OllamaSummarizer', 'SummaryError']
