"""
Insight Annotator Module
========================

Bounded Context for advisory ticket analysis.

Responsibilities:
- Sentiment, suggested priority/category, root cause, resolution steps
  and observations for a ticket
- Two interchangeable strategies: offline keyword rules and an LLM
- Strictly read-only: an insight never changes the ticket it describes
"""
