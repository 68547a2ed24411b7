"""Application Constants.

Centralized constants used throughout the application.
This file contains all hardcoded values that should be maintained in one place.
"""

# ============================================================================
# USER CONSTANTS
# ============================================================================

class UserType:
    """Account types."""
    FOOD_ENTHUSIAST = "food_enthusiast"
    FOOD_STALL_OWNER = "food_stall_owner"
    ADMIN = "admin"

    ALL_TYPES = [FOOD_ENTHUSIAST, FOOD_STALL_OWNER, ADMIN]

    # Types a visitor may pick when registering
    REGISTRABLE_TYPES = [FOOD_ENTHUSIAST, FOOD_STALL_OWNER]


class PasswordPolicy:
    """Password strength requirements."""
    MIN_LENGTH = 8
    RESET_TOKEN_BYTES = 32  # 64 hex chars


# ============================================================================
# WORKFLOW STATUS CONSTANTS
# ============================================================================

class ApplicationStatus:
    """Stall application status values."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ARCHIVED = "archived"

    ALL_STATUSES = [PENDING, APPROVED, REJECTED, ARCHIVED]


class AmendmentStatus:
    """Stall amendment request status values."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL_STATUSES = [PENDING, APPROVED, REJECTED]


class ClosureStatus:
    """Account closure request status values."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL_STATUSES = [PENDING, APPROVED, REJECTED]


class ReportStatus:
    """Review report status values."""
    PENDING = "pending"
    REVIEWED = "reviewed"
    DISMISSED = "dismissed"

    ALL_STATUSES = [PENDING, REVIEWED, DISMISSED]


# ============================================================================
# STALL CONSTANTS
# ============================================================================

class StallCategory:
    """Stall category slugs and the display variants accepted in filters."""
    BEVERAGES = "beverages"
    RICE_MEALS = "rice_meals"
    SNACKS = "snacks"
    STREET_FOOD = "street_food"
    FAST_FOOD = "fast_food"
    PASTRIES = "pastries"
    OTHERS = "others"

    ALL_CATEGORIES = [
        BEVERAGES,
        RICE_MEALS,
        SNACKS,
        STREET_FOOD,
        FAST_FOOD,
        PASTRIES,
        OTHERS,
    ]

    DISPLAY_NAMES: dict[str, str] = {
        BEVERAGES: "Beverages",
        RICE_MEALS: "Rice Meals",
        SNACKS: "Snacks",
        STREET_FOOD: "Street Food",
        FAST_FOOD: "Fast Food",
        PASTRIES: "Pastries",
        OTHERS: "Others",
    }


class StallDefaults:
    """Defaults used when formatting stalls."""
    HOURS_NOT_SPECIFIED = "Hours not specified"
    FEATURED_LIMIT = 6
    NAME_MIN_LENGTH = 2
    DESCRIPTION_MIN_LENGTH = 5


class AmendableField:
    """Stall fields an owner may request changes to."""
    NAME = "name"
    DESCRIPTION = "description"
    HOURS = "hours"
    CATEGORIES = "categories"
    LOGO_PATH = "logo_path"
    ADDRESS = "address"

    ALL_FIELDS = [NAME, DESCRIPTION, HOURS, CATEGORIES, LOGO_PATH, ADDRESS]


class ApplicationDocument:
    """Files attached to a stall application and the column each one fills."""
    BIR = "bir"
    PERMIT = "permit"
    DTI_SEC = "dti_sec"
    LOGO = "logo"

    COLUMNS: dict[str, str] = {
        BIR: "bir_path",
        PERMIT: "permit_path",
        DTI_SEC: "dti_sec_path",
        LOGO: "logo_path",
    }

    ALL_DOCUMENTS = [BIR, PERMIT, DTI_SEC, LOGO]


class UploadRules:
    """Accepted content types mapped to the extension files are stored with."""
    IMAGE_TYPES: dict[str, str] = {
        "image/jpeg": ".jpg",
        "image/png": ".png",
    }
    DOCUMENT_TYPES: dict[str, str] = {
        **IMAGE_TYPES,
        "application/pdf": ".pdf",
    }
    APPLICATIONS_FOLDER = "applications"


# ============================================================================
# REVIEW CONSTANTS
# ============================================================================

class ReviewRules:
    """Review validation rules."""
    MIN_RATING = 1
    MAX_RATING = 5
    RECENT_LIMIT = 6
    ANONYMOUS_NAME = "Anonymous"
    RATING_DECIMALS = 2


class ReactionType:
    """Review reaction types."""
    LIKE = "like"
    DISLIKE = "dislike"

    ALL_TYPES = [LIKE, DISLIKE]


class ModerationAction:
    """Review moderation actions."""
    HIDE = "hide"
    UNHIDE = "unhide"
    DELETE = "delete"


# ============================================================================
# ADMIN LOG CONSTANTS
# ============================================================================

class AdminAction:
    """Action names written to the admin log."""
    APPROVE = "approve"
    DECLINE = "decline"
    ARCHIVE = "archive"
    DELETE_REVIEW = "delete_review"
    DISMISS_REPORTS = "dismiss_reports"
    HIDE_REVIEW = "hide_review"
    UNHIDE_REVIEW = "unhide_review"
    APPROVE_AMENDMENT = "approve_amendment"
    REJECT_AMENDMENT = "reject_amendment"
    APPROVE_CLOSURE = "approve_closure"
    REJECT_CLOSURE = "reject_closure"
    CONVERT_TO_ADMIN = "convert_to_admin"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"
    DELETE_STALL = "delete_stall"


class EntityType:
    """Entity names written to the admin log."""
    APPLICATION = "application"
    AMENDMENT = "amendment"
    CLOSURE = "closure"
    REVIEW = "review"
    STALL = "stall"
    USER = "user"


# ============================================================================
# PAGINATION CONSTANTS
# ============================================================================

class Pagination:
    """Pagination defaults and limits."""
    DEFAULT_PAGE = 1
    DEFAULT_PAGE_SIZE = 10
    STALLS_PAGE_SIZE = 12
    REVIEWS_PAGE_SIZE = 10
    WORKFLOW_PAGE_SIZE = 20
    ADMIN_LOGS_PAGE_SIZE = 50
    MIN_PAGE_SIZE = 1
    MAX_PAGE_SIZE = 100


# ============================================================================
# DATABASE CONSTANTS
# ============================================================================

class DatabaseLimits:
    """Database field length limits."""
    NAME_MAX_LENGTH = 100
    EMAIL_MAX_LENGTH = 255
    STALL_NAME_MAX_LENGTH = 150
    PATH_MAX_LENGTH = 500
    REASON_MAX_LENGTH = 1000
    ADDRESS_MAX_LENGTH = 500

    # Numeric precision
    PRICE_PRECISION = 10
    PRICE_SCALE = 2
    RATING_PRECISION = 3
    RATING_SCALE = 2


# ============================================================================
# SECURITY CONSTANTS
# ============================================================================

class Security:
    """Security-related constants."""
    REQUEST_ID_PREFIX_WORKER = "worker-"
    REQUEST_ID_PREFIX_EMAIL = "email-"
    REQUEST_ID_PREFIX_CLEANUP = "cleanup-task"
    REQUEST_ID_UUID_LENGTH = 8


# ============================================================================
# CACHE CONSTANTS
# ============================================================================

class Cache:
    """Cache-related constants."""
    DEFAULT_TTL_SECONDS = 300
    STALL_TTL_SECONDS = 300
    CATEGORIES_TTL_SECONDS = 600
    STALL_KEY = "stall:{stall_id}"
    CATEGORIES_KEY = "stalls:categories"


# ============================================================================
# TIMEOUT CONSTANTS
# ============================================================================

class Timeout:
    """Timeout values in seconds."""
    JOB_TIMEOUT = 60
    SMTP_TIMEOUT = 30


# ============================================================================
# ERROR MESSAGES
# ============================================================================

class ErrorMessages:
    """Standard error messages."""
    INTERNAL_SERVER_ERROR = "Internal server error"
    AUTHENTICATION_REQUIRED = "Authentication required"
    ADMIN_REQUIRED = "Admin access required"
    INVALID_CREDENTIALS = "Invalid email or password"
    ACCOUNT_DEACTIVATED = "Your account has been deactivated"
    METHOD_NOT_ALLOWED = "Method not allowed"
    VALIDATION_FAILED = "Validation failed"
    RESOURCE_NOT_FOUND = "Resource not found"
    USER_NOT_FOUND = "User not found"
    STALL_NOT_FOUND = "Stall not found"
    MENU_ITEM_NOT_FOUND = "Menu item not found"
    REVIEW_NOT_FOUND = "Review not found"
    APPLICATION_NOT_FOUND = "Application not found"
    AMENDMENT_NOT_FOUND = "Amendment not found"
    CLOSURE_NOT_FOUND = "Closure request not found"
    INVALID_RESET_TOKEN = "Invalid or expired reset token"
    ALREADY_REVIEWED = "You have already reviewed this stall"
    ALREADY_REPORTED = "You have already reported this review and it is pending review"
    CANNOT_REPORT_OWN = "You cannot report your own review"
    CANNOT_REACT_OWN = "You cannot react to your own review"
    PENDING_APPLICATION_EXISTS = "You already have a pending application"
    PENDING_CLOSURE_EXISTS = "You already have a pending closure request"
    UNSUPPORTED_FILE_TYPE = "Unsupported file type"
    FILE_TOO_LARGE = "File is too large"
    EMPTY_FILE = "Uploaded file is empty"
    DOCUMENT_NOT_FOUND = "Document not found"
    ACTIVE_STALLS_BLOCK_CLOSURE = (
        "Accounts with active stalls cannot be closed. Please contact an administrator"
    )


# ============================================================================
# SUCCESS MESSAGES
# ============================================================================

class SuccessMessages:
    """Standard success messages."""
    SUCCESS = "Success"
    LOGIN = "Login successful"
    LOGOUT = "Logout successful"
    REGISTERED = "Registration successful"
    PASSWORD_RESET_REQUESTED = (
        "If an account exists with that email, a password reset link has been sent"
    )
    PASSWORD_RESET = "Password has been reset successfully"
    PASSWORD_CHANGED = "Password changed successfully"
    PROFILE_UPDATED = "Profile updated successfully"
    USER_UPDATED = "User updated successfully"
    USER_DELETED = "User deleted successfully"
    STALL_CREATED = "Stall created successfully"
    STALL_UPDATED = "Stall updated successfully"
    STALL_DELETED = "Stall deleted successfully"
    MENU_ITEM_CREATED = "Menu item created successfully"
    MENU_ITEM_UPDATED = "Menu item updated successfully"
    MENU_ITEM_DELETED = "Menu item deleted successfully"
    REVIEW_CREATED = "Review submitted successfully"
    REVIEW_UPDATED = "Review updated successfully"
    REVIEW_DELETED = "Review deleted successfully"
    REVIEW_HIDDEN = "Review hidden successfully"
    REVIEW_UNHIDDEN = "Review restored successfully"
    REACTION_SAVED = "Reaction saved"
    REPORT_SUBMITTED = "Report submitted successfully"
    REPORTS_DISMISSED = "Reports dismissed successfully"
    APPLICATION_CREATED = "Application submitted successfully"
    APPLICATION_UPDATED = "Application updated successfully"
    APPLICATION_APPROVED = "Application approved successfully"
    APPLICATION_REJECTED = "Application rejected successfully"
    APPLICATION_ARCHIVED = "Application archived successfully"
    DOCUMENT_UPLOADED = "Document uploaded successfully"
    AMENDMENT_CREATED = "Amendment request submitted successfully"
    AMENDMENT_APPROVED = "Amendment approved successfully"
    AMENDMENT_REJECTED = "Amendment rejected successfully"
    CLOSURE_CREATED = "Closure request submitted successfully"
    CLOSURE_APPROVED = "Account closed successfully"
    CLOSURE_REJECTED = "Closure request rejected successfully"
    CONVERTED_TO_ADMIN = "User converted to admin successfully"


# ============================================================================
# EMAIL TEMPLATES
# ============================================================================

class EmailTemplates:
    """Subjects and bodies for outgoing emails (str.format placeholders)."""
    PASSWORD_RESET_SUBJECT = "Reset Your BuzzarFeed Password"
    PASSWORD_RESET_BODY = (
        "Hi {name},\n\n"
        "We received a request to reset your password. Use the link below within "
        "{expiry_minutes} minutes:\n\n{reset_url}\n\n"
        "If you did not request this, you can ignore this email."
    )
    APPLICATION_APPROVED_SUBJECT = "Your Stall Application Has Been Approved"
    APPLICATION_APPROVED_BODY = (
        "Hi {name},\n\n"
        "Good news! Your application for \"{stall_name}\" has been approved and "
        "your stall is now live on BuzzarFeed.\n\nReview notes: {notes}"
    )
    APPLICATION_DECLINED_SUBJECT = "Update on Your Stall Application"
    APPLICATION_DECLINED_BODY = (
        "Hi {name},\n\n"
        "Unfortunately your application for \"{stall_name}\" was not approved.\n\n"
        "Reason: {reason}"
    )
    REVIEW_REMOVED_SUBJECT = "Your Review Has Been Removed"
    REVIEW_REMOVED_BODY = (
        "Hi {name},\n\n"
        "Your review of \"{stall_name}\" was removed by a moderator.\n\n"
        "Reason: {reason}"
    )
    AMENDMENT_DECIDED_SUBJECT = "Your Amendment Request Was {decision}"
    AMENDMENT_DECIDED_BODY = (
        "Hi {name},\n\n"
        "Your request to change the {field_name} of \"{stall_name}\" was {decision}.\n\n"
        "Notes: {notes}"
    )
    CLOSURE_APPROVED_SUBJECT = "Your BuzzarFeed Account Has Been Closed"
    CLOSURE_APPROVED_BODY = (
        "Hi {name},\n\n"
        "Your account closure request was approved and your account has been removed."
    )
    CLOSURE_REJECTED_SUBJECT = "Update on Your Account Closure Request"
    CLOSURE_REJECTED_BODY = (
        "Hi {name},\n\n"
        "Your account closure request was not approved.\n\nNotes: {notes}"
    )


# ============================================================================
# HTTP HEADERS
# ============================================================================

class HttpHeaders:
    """HTTP header names."""
    REQUEST_ID = "X-Request-ID"
    PROCESS_TIME = "X-Process-Time"
    AUTHORIZATION = "Authorization"
    CONTENT_TYPE = "Content-Type"
    ACCEPT = "Accept"
    CONTENT_LENGTH = "Content-Length"
    USER_AGENT = "User-Agent"


class HttpStatusCodes:
    """HTTP status codes referenced outside FastAPI's status module."""
    INTERNAL_SERVER_ERROR = 500


# ============================================================================
# API ENDPOINTS
# ============================================================================

class ApiEndpoints:
    """API endpoint paths."""
    DOCS = "/docs"
    REDOC = "/redoc"
    OPENAPI = "/openapi.json"
    HEALTH = "/health"
    METRICS = "/metrics"
    ROOT = "/"
