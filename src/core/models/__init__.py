__all__ = (
    "Base",
    "DatabaseHelper",
    "db_helper",
    "DailyMetrics",
    "TopContent",
)

from .base import Base
from .db_helper import DatabaseHelper, db_helper
from .daily_metrics import DailyMetrics
from .top_content import TopContent
