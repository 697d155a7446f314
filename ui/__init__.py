"""UI layer -- Rich dashboard and output formatters."""

from .dashboard import (
    SessionDashboard,
    console,
    print_header,
    render_session,
)
from .output import create_result_json, format_text_result

__all__ = [
    "SessionDashboard",
    "console",
    "create_result_json",
    "format_text_result",
    "print_header",
    "render_session",
]
