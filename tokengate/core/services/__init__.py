from .tokens import TokenAdminService, TokenNotFoundError

__all__ = ["TokenAdminService", "TokenNotFoundError"]
