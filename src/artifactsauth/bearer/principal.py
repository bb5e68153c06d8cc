from __future__ import annotations

import ctypes
import logging
import sys

logger = logging.getLogger(__name__)

# EXTENDED_NAME_FORMAT value from secext.h
_NAME_USER_PRINCIPAL = 8
_ERROR_MORE_DATA = 234


def get_user_principal_name() -> str | None:
    """Return the signed-in Windows user's UPN (``user@domain``), if any.

    Local and workgroup accounts have no UPN; neither does any non-Windows
    host. Both cases return ``None``.
    """
    if sys.platform != "win32":
        return None

    get_user_name_ex = ctypes.windll.secur32.GetUserNameExW  # type: ignore[attr-defined]
    size = ctypes.c_ulong(0)
    get_user_name_ex(_NAME_USER_PRINCIPAL, None, ctypes.byref(size))
    if ctypes.GetLastError() != _ERROR_MORE_DATA or size.value == 0:  # type: ignore[attr-defined]
        logger.debug("No user principal name is available for the current user.")
        return None

    buffer = ctypes.create_unicode_buffer(size.value)
    if not get_user_name_ex(_NAME_USER_PRINCIPAL, buffer, ctypes.byref(size)):
        logger.debug("GetUserNameExW failed with error %d.", ctypes.GetLastError())  # type: ignore[attr-defined]
        return None
    return buffer.value or None
