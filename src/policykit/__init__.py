"""policykit — classification, policy evaluation, queries, and atomic service operations."""

__version__ = "0.1.0"
