"""
Infrastructure Layer
=====================

Low-level technical concerns:
- Logging setup
- Triage observers (trace buffer, counters)
"""
