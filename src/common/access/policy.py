# src/common/access/policy.py
"""
Role policy evaluation.

``decide`` is the single place where a role is turned into an allow/deny
answer. It is pure: it never touches the database, so every resource access
function can call it before issuing any query and a denied request performs
no writes.
"""

import enum
from typing import Optional
from uuid import UUID

from src.common.exceptions import Forbidden
from src.models.models import User, UserRole


class Decision(enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


class Action(enum.Enum):
    # Patients
    LIST_PATIENTS = "list_patients"
    READ_PATIENT = "read_patient"
    WRITE_PATIENT = "write_patient"
    PROVISION_PATIENT = "provision_patient"
    ADD_VISIT_RECORD = "add_visit_record"

    # Prescriptions
    READ_PRESCRIPTIONS = "read_prescriptions"
    CREATE_PRESCRIPTION = "create_prescription"
    UPDATE_PRESCRIPTION_STATUS = "update_prescription_status"
    SUGGEST_MEDICATIONS = "suggest_medications"

    # Medical reports
    READ_REPORTS = "read_reports"
    UPLOAD_REPORT = "upload_report"
    DOWNLOAD_REPORT = "download_report"
    ANALYZE_REPORT = "analyze_report"

    # Vitals
    READ_VITALS = "read_vitals"
    RECORD_VITALS = "record_vitals"

    # Own account
    READ_NOTIFICATIONS = "read_notifications"
    CREATE_NOTIFICATION = "create_notification"
    MARK_NOTIFICATION_READ = "mark_notification_read"
    READ_STATS = "read_stats"

    # User management
    LIST_USERS = "list_users"
    CREATE_USER = "create_user"


# Clinical actions a doctor may take on any patient
CLINICAL_ACTIONS = frozenset({
    Action.LIST_PATIENTS,
    Action.READ_PATIENT,
    Action.WRITE_PATIENT,
    Action.PROVISION_PATIENT,
    Action.ADD_VISIT_RECORD,
    Action.READ_PRESCRIPTIONS,
    Action.CREATE_PRESCRIPTION,
    Action.UPDATE_PRESCRIPTION_STATUS,
    Action.SUGGEST_MEDICATIONS,
    Action.READ_REPORTS,
    Action.UPLOAD_REPORT,
    Action.DOWNLOAD_REPORT,
    Action.ANALYZE_REPORT,
    Action.READ_VITALS,
    Action.RECORD_VITALS,
})

# Actions a patient may never take, even on their own records
PROVIDER_ONLY_ACTIONS = frozenset({
    Action.WRITE_PATIENT,
    Action.PROVISION_PATIENT,
    Action.ADD_VISIT_RECORD,
    Action.CREATE_PRESCRIPTION,
    Action.UPDATE_PRESCRIPTION_STATUS,
    Action.SUGGEST_MEDICATIONS,
    Action.UPLOAD_REPORT,
    Action.ANALYZE_REPORT,
})

USER_MANAGEMENT_ACTIONS = frozenset({
    Action.LIST_USERS,
    Action.CREATE_USER,
})


def decide(actor: User, action: Action, resource_owner_id: Optional[UUID] = None) -> Decision:
    """Decide whether ``actor`` may perform ``action`` on a resource owned by ``resource_owner_id``."""
    role = actor.role
    owns_resource = resource_owner_id is not None and resource_owner_id == actor.id

    if role == UserRole.ADMIN:
        return Decision.ALLOW

    if role == UserRole.DOCTOR:
        if action in USER_MANAGEMENT_ACTIONS:
            return Decision.DENY
        if action in CLINICAL_ACTIONS:
            return Decision.ALLOW
        return Decision.ALLOW if owns_resource else Decision.DENY

    if role == UserRole.PATIENT:
        if action in USER_MANAGEMENT_ACTIONS or action in PROVIDER_ONLY_ACTIONS:
            return Decision.DENY
        return Decision.ALLOW if owns_resource else Decision.DENY

    return Decision.DENY


def authorize(
    actor: User,
    action: Action,
    resource_owner_id: Optional[UUID] = None,
    message: Optional[str] = None,
) -> None:
    """Raise ``Forbidden`` unless ``decide`` allows the action."""
    if decide(actor, action, resource_owner_id) is Decision.DENY:
        raise Forbidden(message)
