"""
Application layer - Use cases and orchestration for Cocentrica.

This layer contains:
- Port definitions (store, notifier, visibility, invite issuer)
- Governance services (mode controller, vote ledger, executor)
- Command handlers for the six member operations

IMPORT RULES:
- May import from domain and config
- Must NOT import from infrastructure or bootstrap
"""
