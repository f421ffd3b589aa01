"""Constants for historic attendance data loading."""

# Column aliases in attendance exports (first match wins)
COLUMN_ALIASES = {
    "class_format": ["cleanedClass", "cleaned_class", "class_format", "classFormat", "class_name"],
    "location": ["location", "Location"],
    "day": ["dayOfWeek", "day_of_week", "day", "Day"],
    "time": ["classTime", "class_time", "time", "Time"],
    "teacher_name": ["teacherName", "teacher_name", "instructor", "teacher"],
    "teacher_first_name": ["teacherFirstName", "teacher_first_name"],
    "teacher_last_name": ["teacherLastName", "teacher_last_name"],
    "participants": ["participants", "attendance", "Participants"],
    "revenue": ["totalRevenue", "total_revenue", "revenue", "Revenue"],
    "duration": ["duration", "Duration", "classDuration"],
}

# Columns a record cannot be built without
REQUIRED_FIELDS = ["class_format", "location", "day", "time"]

# Formats that run longer than the standard hour
LONG_CLASS_KEYWORDS = ["Workshop", "Masterclass"]
LONG_CLASS_DURATION = 1.5
DEFAULT_CLASS_DURATION = 1.0
MAX_CLASS_DURATION = 24.0

# Accepted day spellings
DAY_ABBREVIATIONS = {
    "mon": "Monday",
    "tue": "Tuesday",
    "tues": "Tuesday",
    "wed": "Wednesday",
    "thu": "Thursday",
    "thur": "Thursday",
    "thurs": "Thursday",
    "fri": "Friday",
    "sat": "Saturday",
    "sun": "Sunday",
}
