"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Authentication errors (401)
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Authorization errors (403)
    FORBIDDEN = "FORBIDDEN"
    NOT_AN_ORG_MEMBER = "NOT_AN_ORG_MEMBER"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"

    # Not found errors (404)
    ORGANIZATION_NOT_FOUND = "ORGANIZATION_NOT_FOUND"
    GROUP_NOT_FOUND = "GROUP_NOT_FOUND"
    GROUP_MEMBER_NOT_FOUND = "GROUP_MEMBER_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_CRITERIA = "INVALID_CRITERIA"
    NOT_A_DYNAMIC_GROUP = "NOT_A_DYNAMIC_GROUP"
    DYNAMIC_GROUP_MEMBERSHIP = "DYNAMIC_GROUP_MEMBERSHIP"
    USERS_NOT_IN_ORGANIZATION = "USERS_NOT_IN_ORGANIZATION"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.UNAUTHORIZED,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class AuthorizationError(AppException):
    """Authorization failed."""

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(
            error_code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=403,
        )


class NotAnOrgMemberError(AppException):
    """User does not belong to the organization."""

    def __init__(self, org_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_AN_ORG_MEMBER,
            message="You are not a member of this organization",
            status_code=403,
            details={"org_id": org_id},
        )


class InsufficientPermissionsError(AppException):
    """User does not have sufficient permissions."""

    def __init__(self, required_role: str = "org_admin") -> None:
        super().__init__(
            error_code=ErrorCode.INSUFFICIENT_PERMISSIONS,
            message=f"Insufficient permissions. Required role: {required_role}",
            status_code=403,
            details={"required_role": required_role},
        )


class OrganizationNotFoundError(AppException):
    """Organization not found."""

    def __init__(self, org_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.ORGANIZATION_NOT_FOUND,
            message=f"Organization not found: {org_id}",
            status_code=404,
            details={"org_id": org_id},
        )


class GroupNotFoundError(AppException):
    """Group not found."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_NOT_FOUND,
            message=f"Group not found: {group_id}",
            status_code=404,
            details={"group_id": group_id},
        )


class GroupMemberNotFoundError(AppException):
    """Group member not found."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.GROUP_MEMBER_NOT_FOUND,
            message="User is not a member of this group",
            status_code=404,
            details={"user_id": user_id},
        )


class InvalidCriteriaError(AppException):
    """Dynamic group criteria failed validation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_CRITERIA,
            message=message,
            status_code=400,
            details={"field": field} if field else None,
        )


class NotADynamicGroupError(AppException):
    """Operation requires a dynamic group."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOT_A_DYNAMIC_GROUP,
            message=f"Group is not dynamic: {group_id}",
            status_code=400,
            details={"group_id": group_id},
        )


class DynamicGroupMembershipError(AppException):
    """Membership of a dynamic group cannot be edited directly."""

    def __init__(self, group_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.DYNAMIC_GROUP_MEMBERSHIP,
            message="Members of a dynamic group are computed and cannot be edited",
            status_code=400,
            details={"group_id": group_id},
        )


class UsersNotInOrganizationError(AppException):
    """One or more users do not belong to the group's organization."""

    def __init__(self, user_ids: list[str]) -> None:
        super().__init__(
            error_code=ErrorCode.USERS_NOT_IN_ORGANIZATION,
            message="Some users do not belong to this organization",
            status_code=400,
            details={"user_ids": user_ids},
        )
