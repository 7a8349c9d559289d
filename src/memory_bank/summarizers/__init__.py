"""Summarizers for the summary hierarchy."""

from memory_bank.summarizers.base import Summarizer, SummaryStyle
from memory_bank.summarizers.extractive import ExtractiveSummarizer
from memory_bank.summarizers.openai import OpenAISummarizer

__all__ = ["Summarizer", "SummaryStyle", "ExtractiveSummarizer", "OpenAISummarizer"]
