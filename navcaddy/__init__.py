"""
NavCaddy Engine Package

Natural-language routing and shot memory for a golf assistant.

Subpackages:
    shared: Common utilities (errors, change streams, Redis config, structured logging)
    intent: Input normalization, intent registry, LLM classification, clarification fallback
    routing: Prerequisite gating, routing orchestration, per-session input pipeline
    memory: Shot and miss-pattern memory with time decay, session context
"""

__all__ = ["shared", "intent", "routing", "memory"]
