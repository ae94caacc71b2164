from .parsing import (  # noqa: F401
    InvalidFormat,
    InvalidValue,
    ParsedValue,
    ValueParseError,
    format_raw_value,
    parse_value,
)
from .ranking import RankedSubmission, move_item, rank_submissions, short_name  # noqa: F401
from .stats import LeaderboardStats, compute_stats  # noqa: F401
