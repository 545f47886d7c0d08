# API endpoints
from . import suggestions

__all__ = ["suggestions"]
