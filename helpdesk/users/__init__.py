"""
User Directory Module
=====================

Bounded Context for accounts, authentication and user administration.

Responsibilities:
- Register, login and change-password with opaque bearer tokens
- Resolve a bearer token into a SessionContext for every request
- Profile self-service and rank-gated user administration
"""
