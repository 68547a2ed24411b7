"""ORM rows to API payloads.

Output shapes are shared by every endpoint that returns the entity, so the
directory, the admin console and the owner views agree on field names.
"""

from ...core.constants import ReviewRules, StallDefaults
from ...utils import to_float


def stall_to_dict(stall) -> dict:
    """Format a stall; ``owner`` and ``location`` must be eagerly loaded.

    Examples:
        >>> stall_to_dict(stall)["hours"]
        "Hours not specified"
    """
    location = stall.location
    owner = stall.owner

    return {
        "id": stall.id,
        "name": stall.name,
        "description": stall.description,
        "categories": list(stall.categories or []),
        "rating": round(to_float(stall.average_rating), 2),
        "reviews": int(stall.total_reviews or 0),
        "hours": stall.hours or StallDefaults.HOURS_NOT_SPECIFIED,
        "image": stall.logo_path,
        "address": location.address if location else None,
        "latitude": location.latitude if location else None,
        "longitude": location.longitude if location else None,
        "is_active": stall.is_active,
        "owner_id": stall.owner_id,
        "owner_name": owner.name if owner else None,
        "owner_email": owner.email if owner else None,
        "created_at": stall.created_at,
    }


def menu_item_to_dict(item) -> dict:
    return {
        "id": item.id,
        "stall_id": item.stall_id,
        "name": item.name,
        "description": item.description,
        "price": to_float(item.price),
        "image": item.image_path,
        "is_available": item.is_available,
    }


def review_to_dict(
    review,
    reviewer_name: str | None,
    stall_name: str | None = None,
    stall_logo: str | None = None,
    likes: int = 0,
    dislikes: int = 0
) -> dict:
    """Format a review. Anonymous reviews hide the author's name."""
    return {
        "id": review.id,
        "stall_id": review.stall_id,
        "stall_name": stall_name,
        "stall_logo": stall_logo,
        "user_id": review.user_id,
        "reviewer": ReviewRules.ANONYMOUS_NAME if review.is_anonymous else reviewer_name,
        "is_anonymous": review.is_anonymous,
        "title": review.title,
        "text": review.comment,
        "rating": round(float(review.rating), 1),
        "likes": likes,
        "dislikes": dislikes,
        "is_hidden": review.is_hidden,
        "created_at": review.created_at,
        "updated_at": review.updated_at,
    }


def report_to_dict(report, reporter_name: str | None = None) -> dict:
    return {
        "id": report.id,
        "review_id": report.review_id,
        "reporter_id": report.reporter_id,
        "reporter_name": reporter_name,
        "reason": report.reason,
        "details": report.details,
        "status": report.status,
        "created_at": report.created_at,
    }


def user_to_dict(user) -> dict:
    """Format a user; the password hash never leaves the service layer."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "user_type": user.user_type,
        "is_active": user.is_active,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def application_to_dict(application, applicant_name: str | None = None) -> dict:
    return {
        "id": application.id,
        "user_id": application.user_id,
        "applicant_name": applicant_name,
        "stall_name": application.stall_name,
        "description": application.description,
        "location": application.location,
        "map_x": application.map_x,
        "map_y": application.map_y,
        "categories": list(application.categories or []),
        "bir_path": application.bir_path,
        "permit_path": application.permit_path,
        "dti_sec_path": application.dti_sec_path,
        "logo_path": application.logo_path,
        "status": application.status,
        "review_notes": application.review_notes,
        "reviewed_by": application.reviewed_by,
        "reviewed_at": application.reviewed_at,
        "stall_id": application.stall_id,
        "created_at": application.created_at,
        "updated_at": application.updated_at,
    }


def amendment_to_dict(amendment, stall_name: str | None = None) -> dict:
    return {
        "id": amendment.id,
        "stall_id": amendment.stall_id,
        "stall_name": stall_name,
        "user_id": amendment.user_id,
        "field_name": amendment.field_name,
        "old_value": amendment.old_value,
        "new_value": amendment.new_value,
        "reason": amendment.reason,
        "status": amendment.status,
        "admin_notes": amendment.admin_notes,
        "reviewed_by": amendment.reviewed_by,
        "reviewed_at": amendment.reviewed_at,
        "created_at": amendment.created_at,
    }


def closure_to_dict(closure) -> dict:
    return {
        "id": closure.id,
        "user_id": closure.user_id,
        "user_name": closure.user_name,
        "user_email": closure.user_email,
        "reason": closure.reason,
        "status": closure.status,
        "admin_notes": closure.admin_notes,
        "reviewed_by": closure.reviewed_by,
        "reviewed_at": closure.reviewed_at,
        "created_at": closure.created_at,
    }


def admin_log_to_dict(log, admin_name: str | None = None) -> dict:
    return {
        "id": log.id,
        "admin_id": log.admin_id,
        "admin_name": admin_name,
        "entity_type": log.entity_type,
        "entity_id": log.entity_id,
        "action": log.action,
        "details": log.details,
        "ip_address": log.ip_address,
        "created_at": log.created_at,
    }
