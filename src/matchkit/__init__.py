"""matchkit: Option and Result containers with exhaustive dispatch.

Public API:
    - option: ``Present``/``Absent`` with ``dispatch``, ``map``, ``apply``,
      ``bind`` and ``run_chain``
    - result: ``Success``/``Failure`` with ``dispatch`` and the same combinators
    - Pipeline: ordered asyncio stages that lift transformations over options
"""

from __future__ import annotations

import logging

from matchkit import option, result
from matchkit.config import Settings, resolve_settings
from matchkit.errors import (
    ConfigurationError,
    EmptyReasonError,
    InvariantViolationError,
    MatchkitError,
    PipelineClosedError,
    PipelineError,
)
from matchkit.option import Absent, Option, Present, absent, present
from matchkit.pipeline import Pipeline
from matchkit.result import EMPTY_REASON, Failure, Result, Success, failure, success

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("matchkit")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("matchkit").addHandler(logging.NullHandler())

__all__ = [
    "EMPTY_REASON",
    "Absent",
    "ConfigurationError",
    "EmptyReasonError",
    "Failure",
    "InvariantViolationError",
    "MatchkitError",
    "Option",
    "Pipeline",
    "PipelineClosedError",
    "PipelineError",
    "Present",
    "Result",
    "Settings",
    "Success",
    "absent",
    "failure",
    "option",
    "present",
    "resolve_settings",
    "result",
    "success",
]
