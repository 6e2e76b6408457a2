"""Identity registry adapters - Remote national-ID verification."""

from .http import HttpIdentityRegistryClient

__all__ = ["HttpIdentityRegistryClient"]
