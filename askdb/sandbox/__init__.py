"""Read-only execution against target databases."""

from askdb.sandbox.executor import ExecutionSandbox
from askdb.sandbox.policy import FORBIDDEN_KEYWORDS, assert_read_only

__all__ = ["ExecutionSandbox", "FORBIDDEN_KEYWORDS", "assert_read_only"]
