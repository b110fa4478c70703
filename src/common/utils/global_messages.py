class GlobalMessages:
    # Auth Messages
    UNAUTHORIZED = "Unauthorized"
    FORBIDDEN = "Forbidden"
    ACCOUNT_ALREADY_EXISTS = "User with this email already exists"
    PASSWORD_TOO_SHORT = "Password must be at least 8 characters long"
    INVALID_SYNC_SECRET = "Invalid sync credentials"
    SYNC_NOT_CONFIGURED = "User sync is not configured"
    LOGOUT_SUCCESS = "Logout successful."

    # Generic Messages
    NOT_FOUND = "Not found"
    INVALID_REQUEST = "Invalid request"
    RATE_LIMITED = "Too many requests. Please try again later."
    INTERNAL_ERROR = "Internal server error"

    # Entity Messages
    USER_NOT_FOUND = "User not found"
    PATIENT_NOT_FOUND = "Patient not found"
    PRESCRIPTION_NOT_FOUND = "Prescription not found"
    REPORT_NOT_FOUND = "Report not found"
    NOTIFICATION_NOT_FOUND = "Notification not found"
    PATIENT_ID_REQUIRED = "Patient ID is required"
    INVALID_FILE_TYPE = "Invalid file type. Allowed: PDF, JPG, PNG"
    FILE_TOO_LARGE = "File size exceeds 10MB limit"
    EMPTY_FILE = "Uploaded file is empty"
    PATIENT_ACCOUNT_REQUIRED = "Patient ID must belong to a patient account"
    IDENTITY_ALREADY_LINKED = "This identity is already linked to another account"
    NOTIFY_OTHERS_FORBIDDEN = "Only admins can notify other users"
