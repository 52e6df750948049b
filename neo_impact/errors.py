class NeoImpactError(Exception):
    """Base class for errors raised by neo_impact."""


class InvalidInput(NeoImpactError, ValueError):
    """Non-positive physical quantity or out-of-range coordinate."""


class UpstreamUnavailable(NeoImpactError, RuntimeError):
    """External data source timed out, failed, or answered with garbage."""

    def __init__(self, source: str, detail: str):
        super().__init__(f"{source} unavailable: {detail}")
        self.source = source
        self.detail = detail
