"""
Access Control Module
=====================

Bounded Context for deciding who may do and see what.

Responsibilities:
- Role ranking and the action/route allow-lists (Role Policy)
- Role-based filtering of replies, articles and ticket columns
- The explicit per-request session context
"""
