"""Message templating for the debug and error channels."""
from __future__ import annotations

import traceback

TRUNCATE_MARK = "(...)"


def truncate(text: str, max_length: int | None) -> str:
    """Cut ``text`` to ``max_length`` characters, ending with the truncation mark."""
    if max_length is None or len(text) <= max_length:
        return text
    if max_length <= len(TRUNCATE_MARK):
        return text[:max_length]
    return text[: max_length - len(TRUNCATE_MARK)] + TRUNCATE_MARK


def _substitute(template: str, values: dict[str, object]) -> str:
    result = template
    for key, value in values.items():
        result = result.replace("{{" + key + "}}", str(value))
    return result


def exception_code(exc: BaseException) -> int:
    code = getattr(exc, "code", None)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    errno = getattr(exc, "errno", None)
    return errno if isinstance(errno, int) else 0


def format_exception(template: str, max_length: int | None, header: str, exc: BaseException) -> str:
    """Render an exception with ``{{header}}``, ``{{code}}``, ``{{class}}``, ``{{message}}`` and ``{{stacktrace}}``."""
    stacktrace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()
    text = _substitute(
        template,
        {
            "header": header,
            "code": exception_code(exc),
            "class": f"{type(exc).__module__}.{type(exc).__qualname__}",
            "message": str(exc),
            "stacktrace": stacktrace,
        },
    )
    return truncate(text, max_length)


def format_log_message(
    template: str,
    max_length: int | None,
    task_id: int,
    task_type: str,
    name: str,
    message: str,
    description: str,
) -> str:
    """Lowercase placeholders keep the case, uppercase ones force uppercase."""
    values: dict[str, object] = {}
    for key, value in (
        ("task_id", task_id),
        ("task_type", task_type),
        ("task_name", name),
        ("message", message),
        ("task_description", description),
    ):
        values[key] = value
        values[key.upper()] = str(value).upper()
    return truncate(_substitute(template, values), max_length)


def duration_string(seconds: float) -> str:
    """Pretty duration for logs: ``12.34s``, ``05m 03s`` or ``2h 05m 03s``."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes:02d}m {secs:02d}s"
