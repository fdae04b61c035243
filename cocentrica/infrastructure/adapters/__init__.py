"""Infrastructure adapters for external systems."""

from cocentrica.infrastructure.adapters.invite_issuer import SecretsInviteIssuer

__all__ = ["SecretsInviteIssuer"]
