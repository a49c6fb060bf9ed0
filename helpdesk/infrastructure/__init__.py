"""
Infrastructure Layer
=====================

Process-wide technical services:
- Database connection management
- LLM client
"""
