"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Config and file schema validation (validators)
    - Points, Bézier evaluation, polyline metrics (geometry)
    - Atomic I/O and YAML (fs)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (subdivision, scripts).

Convenience imports:
    from bezier_flatten.utils import fs, geometry, validators
    from bezier_flatten.utils.logging_config import setup_logging, log_context
"""

from . import fs
from . import geometry
from . import logging_config
from . import validators

from .logging_config import log_context, setup_logging

__all__ = [
    # Modules
    'fs',
    'geometry',
    'logging_config',
    'validators',
    # Direct exports
    'setup_logging',
    'log_context',
]
