"""
Exceptions raised while loading the station and trip datasets.
"""


class DatasetLoadError(RuntimeError):
    """Raised when a station or trip source cannot be loaded.

    Load failures are fatal to initialization: callers must not enter the
    reactive pipeline with a partially loaded dataset.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Failed to load dataset from {source}: {reason}")
