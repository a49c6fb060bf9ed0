"""
Analytics Module
================

Reporting summary over tickets: status counts, per-agent resolutions,
SLA compliance and average resolution time. Manager, Admin and Super
Admin only.
"""
