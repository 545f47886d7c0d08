# Staff authentication module

from app.modules.auth.dependencies import (
    get_staff_directory,
    get_current_staff,
    get_privileged_staff,
)

__all__ = [
    "get_staff_directory",
    "get_current_staff",
    "get_privileged_staff",
]
