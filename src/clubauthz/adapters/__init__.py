from ._common import HeaderIdentityProvider

__all__ = ["HeaderIdentityProvider"]
