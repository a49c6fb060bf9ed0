"""
Shared Kernel Module
====================

This module contains shared infrastructure used across all bounded
contexts (access, tickets, insights, notifications, knowledge, users,
analytics).

Architecture Pattern: Modular Monolith
- Each module is a bounded context
- Shared kernel contains only generic infrastructure
- Domain models are extended within each module

DO NOT add ticket, user or notification business logic to the shared kernel.
"""

__version__ = "1.0.0"
