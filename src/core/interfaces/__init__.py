"""Core interfaces and abstractions.

Why:
- Contracts (Protocol) implemented by concrete adapters.
- The core depends on abstractions, adapters depend on the core.
"""
