from database.models.recruiters import RecruiterProfile
from database.models.time_entries import TimeEntry, TimeEntryStatus
from database.models.notifications import Notification, NotificationType
from database.models.candidates import Candidate, CandidateStatus

__all__ = [
    "RecruiterProfile",
    "TimeEntry",
    "TimeEntryStatus",
    "Notification",
    "NotificationType",
    "Candidate",
    "CandidateStatus",
]
