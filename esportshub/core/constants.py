"""Global constants for the esportshub application."""

# Firestore collections
TOURNAMENTS_COLLECTION = "tournaments"
REGISTRATIONS_COLLECTION = "tournament_registrations"
TEAMS_COLLECTION = "teams"
USERS_COLLECTION = "users"
MATCHES_COLLECTION = "matches_detailed"
AUDIT_LOGS_COLLECTION = "match_audit_logs"

# Registration status
REGISTRATION_APPROVED = "approved"

# Tournament status
TOURNAMENT_UPCOMING = "upcoming"
TOURNAMENT_ONGOING = "ongoing"
TOURNAMENT_COMPLETED = "completed"

# Match status
MATCH_SCHEDULED = "scheduled"
MATCH_COMPLETED = "completed"
MATCH_TYPE_ELIMINATION = "ELIMINATION"

# Slot sentinels
BYE = "BYE"
TBD = "TBD"
SLOT_A = "teamA"
SLOT_B = "teamB"

# Placeholder names for unresolved participants
UNKNOWN_TEAM_NAME = "Unknown Team"
UNKNOWN_PLAYER_NAME = "Unknown Player"

MIN_PARTICIPANTS = 2
SYSTEM_USER = "system"
