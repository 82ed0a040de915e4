import os
from typing import Any

from hypothesis import settings

# Deep parenthesised inputs make the recursive-descent parser slow to shrink.
settings.register_profile("ci", max_examples=300, deadline=None)
settings.register_profile("dev", max_examples=50, deadline=None)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))

# Subprocess coverage: start collecting as early as possible when requested
if os.getenv("COVERAGE_PROCESS_START"):
    import coverage

    coverage.process_startup()

    # Collector.stop asserts it is the active collector, which fails in containers
    import coverage.collector

    def safe_stop(self: Any) -> None:
        if self in getattr(self, "_collectors", []):
            self._collectors.remove(self)

    coverage.collector.Collector.stop = safe_stop
