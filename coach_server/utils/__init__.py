# coach_server/utils/__init__.py
# -*- coding: utf-8 -*-
"""
Interview Coach Server — Utility toolbox
----------------------------------------
Shared helpers used across the server:

- file_io   : JSON/text read/write helpers (atomic writes)
- logging   : central logging configuration
- timers    : stopwatch for latency logging

    from coach_server.utils import setup_logging, write_json_atomic
"""

from __future__ import annotations

from .file_io import (  # noqa: F401
    read_json,
    write_json_atomic,
    delete_file,
    read_text_safely,
)

from .logging import (  # noqa: F401
    setup_logging,
    get_logger,
)

from .timers import (  # noqa: F401
    Stopwatch,
)
