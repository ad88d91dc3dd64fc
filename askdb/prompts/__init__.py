"""Prompt templates and assembly."""

from askdb.prompts.builder import SQLPromptBuilder
from askdb.prompts.dialects import DialectProfile, dialect_for
from askdb.prompts.loader import PromptLoader

__all__ = ["DialectProfile", "PromptLoader", "SQLPromptBuilder", "dialect_for"]
