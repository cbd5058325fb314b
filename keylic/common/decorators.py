"""Guards that run a function only while a KeyAuth license is active.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

from keylic.common.exceptions import LicenseInactiveError

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "License is not active"


def _guard(
    resolve: Callable[[Callable, tuple[Any, ...]], Any],
    error_message: str,
    raise_exception: bool,  # noqa: FBT001
) -> Callable:
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def guarded(*args: Any, **kwargs: Any) -> Any:
            if resolve(func, args).is_license_active():
                return func(*args, **kwargs)
            if raise_exception:
                raise LicenseInactiveError(error_message)
            logger.warning("%s skipped: %s", func.__name__, error_message)
            return None

        return guarded

    return decorator


def requires_active_license(
    license_client: Any | Callable[..., Any] | str,
    error_message: str = DEFAULT_MESSAGE,
    *,
    raise_exception: bool = True,
) -> Callable:
    """Run the decorated function only when a license is active.

    A license is active when the client holds a verified session and the
    facts of a successful login, license activation or registration.

    Args:
        license_client: KeyAuthClient instance, a callable returning one, or
            the name of the attribute holding one on ``self``
        error_message: Message for LicenseInactiveError or the warning
        raise_exception: Raise LicenseInactiveError instead of returning None
    """

    def resolve(func: Callable, args: tuple[Any, ...]) -> Any:
        if isinstance(license_client, str):
            if not args:
                msg = f"'{license_client}' names an attribute of self, got no arguments"
                raise ValueError(msg)
            return getattr(args[0], license_client)
        if hasattr(license_client, "is_license_active"):
            return license_client
        # Factory; methods get self when the factory accepts it
        if args and hasattr(args[0], func.__name__):
            try:
                return license_client(args[0])
            except TypeError:
                pass
        return license_client()

    return _guard(resolve, error_message, raise_exception)


def license_protected(
    get_license_client: Callable[..., Any],
    error_message: str = DEFAULT_MESSAGE,
    *,
    raise_exception: bool = True,
) -> Callable:
    """Like requires_active_license, always fetching the client from a getter.

    The getter is called without arguments, or with ``self`` when it needs it.
    """

    def resolve(func: Callable, args: tuple[Any, ...]) -> Any:
        try:
            return get_license_client()
        except TypeError:
            return get_license_client(*args[:1])

    return _guard(resolve, error_message, raise_exception)
