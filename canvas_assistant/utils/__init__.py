from .responses import error_response

__all__ = ["error_response"]
