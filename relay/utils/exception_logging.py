"""
Exception logging helpers for the relay's operational error channel.

Failures that happen after a response head was flushed cannot be reported to
the caller, so they end up here. These helpers never raise themselves.
"""

import logging


def _safe_str(obj) -> str:
    """
    Convert an object to string, falling back to repr and then to the type name
    when ``__str__`` itself blows up.
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def _sub_exceptions(exception) -> list:
    """Members of an exception group, or an empty list for plain exceptions."""
    try:
        return list(getattr(exception, "exceptions", None) or [])
    except Exception:
        return []


def _describe(exception) -> str:
    text = _safe_str(exception)
    return text or type(exception).__name__


def format_exception_message(exception: BaseException) -> str:
    """
    Format an exception message, folding in the members of an exception group.

    Args:
        exception: The exception to format

    Returns:
        A single-line description such as
        ``"unhandled errors (Sub-exceptions: ReadError: peer closed)"``
    """
    if exception is None:
        return "None"

    members = _sub_exceptions(exception)
    if not members:
        return _describe(exception)

    parts = [f"{type(sub).__name__}: {_describe(sub)}" for sub in members]
    return f"{_describe(exception)} (Sub-exceptions: {'; '.join(parts)})"


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: BaseException,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception together with its cause chain and, for exception groups,
    every member.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Relay]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    try:
        members = _sub_exceptions(exception)
        if members:
            logger.log(
                level,
                f"{prefix} Exception with {len(members)} sub-exceptions: "
                f"{_describe(exception)}",
            )
            for i, sub in enumerate(members):
                logger.log(
                    level,
                    f"{prefix} Sub-exception {i + 1}: {type(sub).__name__}: {_describe(sub)}",
                    exc_info=sub,
                )
            return

        logger.log(
            level,
            f"{prefix} {type(exception).__name__}: {_describe(exception)}",
            exc_info=exception if isinstance(exception, BaseException) else False,
        )
    except Exception:
        # Logging must never take the relay down with it
        try:
            logger.log(logging.ERROR, f"{prefix} Exception (logging failed)")
        except Exception:
            pass
