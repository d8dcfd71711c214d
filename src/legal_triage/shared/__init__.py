"""
Shared Kernel Module
====================

Shared infrastructure used across both bounded contexts (routing and
triage): structured logging and the triage observers.

DO NOT add routing or triage business logic to the shared kernel.
"""
