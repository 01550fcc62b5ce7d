"""
nicemaps: an embeddable NiceGUI widget for annotated game/world maps.

This package provides:
- PinMapWidget: pannable/zoomable image map with pins, editable in place
- Data stores: in-memory, local JSON file, and REST (PostgREST/Supabase)
- Logging utilities for library and application use

For logging configuration in standalone scripts/demos:
    ```python
    from nicemaps.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library, logging is handled by the parent application's
configuration.
"""

import logging

from nicemaps.utils.logging import configure_logging, get_logger

# NullHandler so nicemaps logs don't reach the root logger unless an
# application configured logging.
_logger = logging.getLogger("nicemaps")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__all__ = [
    "configure_logging",
    "get_logger",
]

__version__ = "0.1.0"
