"""
Knowledge Base Module
=====================

Bounded Context for help articles.

Responsibilities:
- Article authoring (staff only)
- Listing, category browsing and keyword search
- Audience filtering: INTERNAL articles never reach a Customer
"""
