# core/constants.py

# --- Activity Verbs (Standard Registry) ---

# Accounts
ACTIVITY_USER_LOGIN = "user.login"
ACTIVITY_USER_LOGOUT = "user.logout"
ACTIVITY_USER_REGISTERED = "user.registered"
ACTIVITY_USER_CREATED = "user.created"
ACTIVITY_USER_UPDATED = "user.updated"
ACTIVITY_USER_STATUS_CHANGED = "user.status_changed"

# Projects
ACTIVITY_PROJECT_CREATED = "project.created"
ACTIVITY_PROJECT_UPDATED = "project.updated"
ACTIVITY_PROJECT_STATUS_CHANGED = "project.status_changed"
ACTIVITY_PROJECT_JOINED = "project.joined"
ACTIVITY_PROJECT_LEFT = "project.left"
ACTIVITY_PROJECT_ROLE_CHANGED = "project.role_changed"

# Surveys
ACTIVITY_SURVEY_CREATED = "survey.created"
ACTIVITY_SURVEY_UPDATED = "survey.updated"
ACTIVITY_SURVEY_SUBMITTED = "survey.submitted"

# Training
ACTIVITY_SESSION_CREATED = "session.created"
ACTIVITY_SESSION_UPDATED = "session.updated"
ACTIVITY_SESSION_STATUS_CHANGED = "session.status_changed"
ACTIVITY_SESSION_REGISTERED = "session.registered"
ACTIVITY_SESSION_UNREGISTERED = "session.unregistered"
ACTIVITY_ATTENDANCE_MARKED = "session.attendance_marked"

# Assignments
ACTIVITY_ASSIGNMENT_CREATED = "assignment.created"
ACTIVITY_ASSIGNMENT_UPDATED = "assignment.updated"
ACTIVITY_ASSIGNMENT_STATUS_CHANGED = "assignment.status_changed"
ACTIVITY_ASSIGNMENT_SUBMITTED = "assignment.submitted"
ACTIVITY_ASSIGNMENT_REVIEWED = "assignment.reviewed"


# --- User-facing messages (never carry internal detail) ---

MSG_LOGIN_REQUIRED = "Please log in to access this page."
MSG_FORBIDDEN = "You do not have permission to access this page."
MSG_CSRF_MISMATCH = "Security token mismatch. Please try again."
MSG_SAVE_ERROR = "Error saving data. Please try again."
MSG_INVALID_ACTION = "Invalid action."
MSG_INTERNAL_ERROR = "An unexpected error occurred. Please try again later."

# Form field carrying the session token on POSTed forms
CSRF_FIELD_NAME = "csrf_token"
