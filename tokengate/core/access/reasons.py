from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class DenialReason(str, Enum):
    """Reasons the access validator can refuse a token"""
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    TOKEN_INACTIVE = "TOKEN_INACTIVE"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    DOMAIN_NOT_ALLOWED = "DOMAIN_NOT_ALLOWED"
    PAGE_NOT_ALLOWED = "PAGE_NOT_ALLOWED"


class ContentFailure(str, Enum):
    """Failures that happen after a token was authorized"""
    PAGE_NOT_FOUND = "PAGE_NOT_FOUND"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


DEFAULT_REASON = "DEFAULT"


@dataclass(frozen=True)
class ReasonMessage:
    title: str
    description: str


REASON_MESSAGES: Dict[str, ReasonMessage] = {
    DenialReason.TOKEN_NOT_FOUND.value: ReasonMessage(
        title="Access Link Invalid",
        description=(
            "The access link you used is not recognized. "
            "Please contact your administrator for a valid access link."
        ),
    ),
    DenialReason.TOKEN_INACTIVE.value: ReasonMessage(
        title="Access Revoked",
        description=(
            "Your access to this content has been revoked. "
            "Please contact your administrator if you believe this is an error."
        ),
    ),
    DenialReason.TOKEN_EXPIRED.value: ReasonMessage(
        title="Access Expired",
        description=(
            "Your access link has expired. "
            "Please contact your administrator to request renewed access."
        ),
    ),
    DenialReason.DOMAIN_NOT_ALLOWED.value: ReasonMessage(
        title="Domain Not Authorized",
        description=(
            "This access link cannot be used from the site you are visiting. "
            "Please open it from an authorized domain or contact your administrator."
        ),
    ),
    DenialReason.PAGE_NOT_ALLOWED.value: ReasonMessage(
        title="Page Not Authorized",
        description=(
            "Your current access level does not include permission to view this page. "
            "Please contact your administrator for assistance."
        ),
    ),
    ContentFailure.PAGE_NOT_FOUND.value: ReasonMessage(
        title="Content Unavailable",
        description=(
            "The requested content could not be found. "
            "Please verify the link and try again."
        ),
    ),
    ContentFailure.CONFIGURATION_ERROR.value: ReasonMessage(
        title="Content Temporarily Unavailable",
        description=(
            "This content is not available right now because of a configuration problem. "
            "Please try again later or contact your administrator."
        ),
    ),
    DEFAULT_REASON: ReasonMessage(
        title="Access Restricted",
        description=(
            "You do not have permission to access this content. "
            "Please use a valid access link provided by your administrator."
        ),
    ),
}


def message_for(reason: Optional[str]) -> ReasonMessage:
    """Look up the visitor-facing message, falling back to the generic one"""
    return REASON_MESSAGES.get(reason or DEFAULT_REASON, REASON_MESSAGES[DEFAULT_REASON])
