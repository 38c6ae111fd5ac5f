from .common import SuccessResponse, TokenActionRequest

__all__ = ["SuccessResponse", "TokenActionRequest"]
