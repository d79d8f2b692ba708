"""
assist package

AI-assist suggestions and the design check.
"""

from assist.panel import AssistPanel, DesignCheck, DesignIssue, IssueKind

__all__ = ["AssistPanel", "DesignCheck", "DesignIssue", "IssueKind"]
