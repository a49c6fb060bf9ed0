"""
Helpdesk Service
================

Support ticket lifecycle and access-control core, organised as a
modular monolith of bounded contexts (access, users, tickets,
notifications, knowledge, analytics, insights) plus an HTTP client.
"""

__version__ = "1.0.0"
