from fastapi import Depends, Request
from typing import Optional

from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.logging_config import logger, set_staff_label
from app.core.security import StaffDirectory, StaffIdentity, staff_credential_header


def get_staff_directory(request: Request) -> StaffDirectory:
    """Credential table owned by the application"""
    return request.app.state.staff_directory


async def get_current_staff(
    request: Request,
    credential: Optional[str] = Depends(staff_credential_header),
    directory: StaffDirectory = Depends(get_staff_directory),
) -> StaffIdentity:
    """Resolve the X-Admin-Password header; missing and wrong secrets both give 401"""
    identity = directory.resolve(credential)
    if identity is None:
        logger.log_auth_event(
            "staff_request", success=False,
            reason="missing credential" if not credential else "unknown credential",
            http_path=request.url.path,
        )
        raise AuthenticationError()

    set_staff_label(identity.label)
    request.state.staff = identity
    return identity


async def get_privileged_staff(
    identity: StaffIdentity = Depends(get_current_staff),
    directory: StaffDirectory = Depends(get_staff_directory),
) -> StaffIdentity:
    """Destructive maintenance is reserved to the privileged role"""
    if not directory.is_privileged(identity):
        logger.log_auth_event(
            "privileged_request", success=False, staff_label=identity.label,
            reason=f"role '{identity.role}' is not '{directory.privileged_role}'",
        )
        raise AuthorizationError(
            f"Only the {directory.privileged_role} role can perform this action"
        )
    return identity
