"""Constants for schedule generation."""

from enum import Enum


class Shift(str, Enum):
    """Half of the schedulable day."""

    MORNING = "morning"
    EVENING = "evening"


# Locations
PRIMARY_LOCATION = "Kwality House, Kemps Corner"
FLAGSHIP_LOCATION = "Supreme HQ, Bandra"
STANDARD_LOCATION = "Kenkere House"
LOCATIONS = [PRIMARY_LOCATION, FLAGSHIP_LOCATION, STANDARD_LOCATION]

# Named studio -> capacity per location
STUDIO_CAPACITIES = {
    PRIMARY_LOCATION: {
        "Studio 1": 20,
        "Studio 2": 12,
        "Mat Studio": 13,
        "Fit Studio": 14,
    },
    FLAGSHIP_LOCATION: {
        "Main Studio": 14,
        "Cycle Studio": 14,
        "Secondary Studio": 12,
    },
    STANDARD_LOCATION: {
        "Main Studio": 12,
        "Secondary Studio": 10,
    },
}

# Locations that run fewer parallel classes than they have studios
MAX_PARALLEL_OVERRIDES = {
    PRIMARY_LOCATION: 2,
}

# Max distinct trainers per (location, day, shift)
DEFAULT_TRAINERS_PER_SHIFT = 2
TRAINERS_PER_SHIFT = {
    FLAGSHIP_LOCATION: 3,
}

# Days
WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
WEEKEND_DAYS = ["Saturday", "Sunday"]
ALL_DAYS = WEEKDAYS + WEEKEND_DAYS

# Candidate start times for gap filling
TIME_SLOTS = [
    "07:00", "07:30", "08:00", "08:30", "09:00", "09:30",
    "10:00", "10:30", "11:00", "11:30",
    "17:30", "18:00", "18:30", "19:00", "19:30", "20:00",
]

# Weekday early-morning anchor at the primary location
ANCHOR_TIME = "07:30"
ANCHOR_DAYS = WEEKDAYS

# Midday band in which no class may start: [start, end)
RESTRICTED_START = "12:30"
RESTRICTED_WEEKDAY_END = "17:00"
RESTRICTED_WEEKEND_END = "16:00"

# Shift boundaries: morning < 14:00, evening >= 15:00
MORNING_END = "14:00"
EVENING_START = "15:00"

# Teacher workload
MAX_WEEKLY_HOURS = 15.0
NEW_TRAINER_WEEKLY_HOURS = 10.0
MAX_DAILY_HOURS = 4.0
MIN_DAYS_OFF = 2
WEEKLY_HOUR_TARGET = 11.0  # best effort only, never enforced
MAX_CLASSES_IN_WINDOW = 2
CONSECUTIVE_WINDOW_MINUTES = 120
SAME_FORMAT_GAP_MINUTES = 60

# Formats a new trainer may teach (keyword match)
NEW_TRAINER_FORMATS = ["Barre 57", "Foundations", "Recovery", "PowerCycle"]

# Performance thresholds
TOP_MIN_AVERAGE = 5.0
TOP_MIN_FREQUENCY = 2
FILL_MIN_PARTICIPANTS = 5.0
TOP_PERFORMER_FLAG = 8.0
HOSTED_KEYWORD = "hosted"

# Next-free-slot probing
PROBE_STEP_MINUTES = 15
PROBE_MAX_ATTEMPTS = 12
DAY_CUTOFF = "21:00"

# Nearby start times tried when a top class's own slot is taken (minutes)
ALTERNATIVE_OFFSETS = [15, -15, 30, -30]

# Candidates tried per slot during gap filling
FILL_CANDIDATES_PER_SLOT = 3
