"""Reporting windows, thresholds and labels.

Each report names its own default window so no call site relies on an
implicit range.
"""

# Default windows when no explicit range is requested
AUDIT_HISTORY_DEFAULT_DAYS = 90
AUDIT_CHANGES_DEFAULT_DAYS = 30
AUDIT_DEPARTMENT_ACCESS_DEFAULT_DAYS = 30
USER_ACTIVITY_WINDOW_DAYS = 30
TEMPORAL_DEFAULT_MONTHS = 12
TEMPORAL_MAX_MONTHS = 36

# Fixed lookbacks and horizons
SUMMARY_TREND_MONTHS = 12
PROJECTION_TRAILING_MONTHS = 3
PROJECTION_HORIZON_MONTHS = 6
SEASONAL_LOOKBACK_MONTHS = 24
YEAR_OVER_YEAR_LOOKBACK_MONTHS = 36
EXPIRATION_HORIZON_MONTHS = 12
UPCOMING_EXPIRATIONS_DAYS = 90

# Result sizes
ASSIGNMENT_HISTORY_LIMIT = 100
LICENSE_CHANGES_LIMIT = 50
TOP_USERS_LIMIT = 10
EXPORT_ACTIVE_USERS_LIMIT = 20
UNDERUTILIZED_LIMIT = 10
MOST_USED_PROVIDERS_LIMIT = 5
EXPORT_ROW_LIMIT = 50000

# Heuristic thresholds
UNDERUTILIZED_THRESHOLD = 0.6
COMPLIANCE_UNDERUTILIZED_RATIO = 0.5

# Forward projection confidence
PROJECTION_BASE_CONFIDENCE = 60
PROJECTION_CONFIDENCE_STEP = 5
PROJECTION_MIN_CONFIDENCE = 30

# Relative date-range tokens accepted by the report builder (days)
DATE_RANGE_TOKENS: dict[str, int] = {"7": 7, "30": 30, "90": 90, "365": 365}
DATE_RANGE_ALL = "all"

# Labels
NO_DEPARTMENT_LABEL = "Sin departamento"
ALL_PROVIDERS_LABEL = "All"
UNTITLED_REPORT_LABEL = "Untitled"
CUSTOM_REPORT_FILENAME_PREFIX = "reporte_personalizado"
FULL_EXPORT_FILENAME_PREFIX = "licencias_reporte"

MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)
