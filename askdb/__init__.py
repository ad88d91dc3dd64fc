"""
AskDB

Ask questions of MySQL and PostgreSQL databases in plain language. A
question is turned into a single read-only SQL statement by a language
model, executed in a sandbox with bounded self-correction, and shaped into
a visualization with a short summary.
"""

__version__ = "0.1.0"
