"""
Exception taxonomy for the analytics engine.

Only ConfigurationError ever reaches the caller of generate_report. The other
two are raised inside a single gather or insight call and are converted into
a degraded (but still valid) report by the service layer:

- ConfigurationError: invalid query (start after end, unknown report type,
  malformed payload). Raised before any store is touched.
- GatherError: one entity-type fetch or decode failed on either tier.
  Recovered as an empty record list.
- InsightError: the insight synthesizer failed or returned an unusable
  response. Recovered by the template fallback.
"""


class ConfigurationError(ValueError):
    """Raised when an analytics query cannot be executed as submitted."""


class GatherError(RuntimeError):
    """Raised when records for one entity type could not be gathered."""

    def __init__(self, entity: str, tier: str, message: str) -> None:
        super().__init__(f"{tier} gather failed for {entity}: {message}")
        self.entity = entity
        self.tier = tier


class InsightError(RuntimeError):
    """Raised when the insight synthesizer cannot produce a usable result."""
