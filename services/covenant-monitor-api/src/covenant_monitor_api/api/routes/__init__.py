"""Route modules for covenant-monitor-api."""

from __future__ import annotations

from . import alerts as alerts
from . import covenant_tests as covenant_tests
from . import covenants as covenants
from . import evaluate as evaluate
from . import health as health
from . import jobs as jobs
from . import periods as periods

__all__: list[str] = []
