# This makes 'services' a Python package
"""
Services Package
================

Business logic layer for the ROSCA manager.

The rotation engine (compliance, rotation, period and cycle services)
is pure computation over app.domain snapshots. The remaining services
apply it to a RoscaStore. Routes should call these services, not the
store directly.
"""

from app.services.cycle_service import (
    compute_total_periods,
    current_cycle,
    cycle_info,
    apply_club_changes,
    grow_for_roster,
    shrink_for_roster,
    period_window,
    ClubConfigError,
    InvalidConfigurationError
)

from app.services.compliance_service import (
    missed_payments,
    first_liable_period,
    compliance_status,
    refresh_missed_payments,
    ComplianceStatus
)

from app.services.rotation_service import (
    effective_rotation_key,
    next_scheduled_period,
    rotation_order,
    recipient_for_period,
    build_schedule,
    ScheduleError,
    UnknownPeriodError
)

from app.services.period_service import (
    period_summary,
    period_status,
    toggle_payment,
    PeriodSummary
)

from app.services.authorization_service import (
    is_group_member,
    is_group_admin,
    can_manage_group,
    can_view_group,
    require_authorization,
    AuthorizationError
)

from app.services.club_service import (
    update_club_settings,
    advance_period,
    sync_periods,
    refresh_member_compliance
)

from app.services.payment_service import (
    PaymentError,
    InvalidAmountError,
    DuplicatePaymentError
)

from app.services.membership_service import (
    get_or_create_user,
    create_group,
    delete_group,
    browse_groups,
    add_member,
    remove_member,
    request_to_join,
    approve_join_request,
    reject_join_request,
    MembershipError,
    DuplicateMemberError
)
