class GridAnalysisError(Exception):
    """Base class for data errors raised by the analysis pipeline."""


class MalformedRecordError(GridAnalysisError):
    """A raw row whose timestamp, date or value cannot be parsed."""

    def __init__(self, message, raw=None):
        super().__init__(message)
        self.raw = raw


class InsufficientDataError(GridAnalysisError):
    """Regression attempted on fewer than 2 distinct temperatures."""


class JoinGapError(GridAnalysisError):
    """Dates present in one series but not the other."""

    def __init__(self, message, gap_dates=()):
        super().__init__(message)
        self.gap_dates = tuple(sorted(gap_dates))

    @property
    def count(self):
        return len(self.gap_dates)


class DegenerateSeriesError(GridAnalysisError):
    """Empty series handed to a percentile or duration curve."""
