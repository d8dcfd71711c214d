"""
Infrastructure Layer
=====================

Clients for the external services the triage engine relies on:
- llm: completion service (OpenAI-compatible, Z.AI, mock)
- search: semantic document search service
"""
