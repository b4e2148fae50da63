from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .analytics.mysql_analytics_repository import MySQLAnalyticsRepository
from .analytics.repository import AnalyticsRepository
from .analytics.service import AnalyticsService
from .applications.approval_service import ApprovalService
from .applications.classifier.factory import SpecialRuleFactory
from .applications.hours.standard_calculator import StandardWorkHoursCalculator
from .applications.mysql_application_repository import MySQLApplicationRepository
from .applications.repository import ApplicationRepository
from .applications.service import ApplicationService
from .audit.mysql_operation_log_repository import MySQLOperationLogRepository
from .audit.repository import OperationLogRepository
from .audit.service import AuditService
from .core.constants import DEFAULT_WEEKLY_LIMIT, SPECIAL_CUTOFF_HOUR
from .database.connection import DBConfig, DatabaseConnection
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .personnel.mysql_personnel_change_repository import MySQLPersonnelChangeRepository
from .personnel.repository import PersonnelChangeRepository
from .personnel.service import PersonnelService
from .users.department_repository import DepartmentRepository, GroupRepository
from .users.mysql_department_repository import MySQLDepartmentRepository, MySQLGroupRepository
from .users.mysql_transport_route_repository import MySQLTransportRouteRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import TransportRouteRepository, UserRepository
from .users.service import AuthService, DepartmentService, ProfileService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    departments_repo: DepartmentRepository
    groups_repo: GroupRepository
    routes_repo: TransportRouteRepository
    applications_repo: ApplicationRepository
    notifications_repo: NotificationRepository
    logs_repo: OperationLogRepository
    changes_repo: PersonnelChangeRepository
    analytics_repo: AnalyticsRepository

    audit_service: AuditService
    notification_service: NotificationService
    auth_service: AuthService
    user_service: UserService
    profile_service: ProfileService
    department_service: DepartmentService
    application_service: ApplicationService
    approval_service: ApprovalService
    personnel_service: PersonnelService
    analytics_service: AnalyticsService


def wire(
    *,
    users_repo: UserRepository,
    departments_repo: DepartmentRepository,
    groups_repo: GroupRepository,
    routes_repo: TransportRouteRepository,
    applications_repo: ApplicationRepository,
    notifications_repo: NotificationRepository,
    logs_repo: OperationLogRepository,
    changes_repo: PersonnelChangeRepository,
    analytics_repo: AnalyticsRepository,
    conn: Optional[DatabaseConnection] = None,
    weekly_limit: int = DEFAULT_WEEKLY_LIMIT,
    special_cutoff_hour: int = SPECIAL_CUTOFF_HOUR,
) -> Container:
    """Build services over the given repositories (MySQL in the app, in-memory in tests)."""
    audit_service = AuditService(logs_repo)
    notification_service = NotificationService(notifications_repo)

    auth_service = AuthService(users_repo, audit_service)
    user_service = UserService(users_repo, departments_repo, groups_repo, audit_service)
    profile_service = ProfileService(users_repo, departments_repo, groups_repo, routes_repo)
    department_service = DepartmentService(departments_repo, groups_repo, users_repo)

    application_service = ApplicationService(
        applications_repo,
        users_repo,
        notification_service,
        audit_service,
        calculator=StandardWorkHoursCalculator(),
        special_rules=SpecialRuleFactory(cutoff_hour=special_cutoff_hour),
        weekly_limit=weekly_limit,
    )
    approval_service = ApprovalService(applications_repo, users_repo, notification_service, audit_service)
    personnel_service = PersonnelService(
        changes_repo,
        users_repo,
        departments_repo,
        notification_service,
        audit_service,
    )
    analytics_service = AnalyticsService(
        analytics_repo,
        departments_repo,
        users_repo,
        applications_repo,
        approval_service,
        weekly_limit=weekly_limit,
    )

    return Container(
        conn=conn,
        users_repo=users_repo,
        departments_repo=departments_repo,
        groups_repo=groups_repo,
        routes_repo=routes_repo,
        applications_repo=applications_repo,
        notifications_repo=notifications_repo,
        logs_repo=logs_repo,
        changes_repo=changes_repo,
        analytics_repo=analytics_repo,
        audit_service=audit_service,
        notification_service=notification_service,
        auth_service=auth_service,
        user_service=user_service,
        profile_service=profile_service,
        department_service=department_service,
        application_service=application_service,
        approval_service=approval_service,
        personnel_service=personnel_service,
        analytics_service=analytics_service,
    )


def build_container(
    *,
    db_config: dict,
    weekly_limit: int = DEFAULT_WEEKLY_LIMIT,
    special_cutoff_hour: int = SPECIAL_CUTOFF_HOUR,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        departments_repo=MySQLDepartmentRepository(conn),
        groups_repo=MySQLGroupRepository(conn),
        routes_repo=MySQLTransportRouteRepository(conn),
        applications_repo=MySQLApplicationRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        logs_repo=MySQLOperationLogRepository(conn),
        changes_repo=MySQLPersonnelChangeRepository(conn),
        analytics_repo=MySQLAnalyticsRepository(conn),
        weekly_limit=weekly_limit,
        special_cutoff_hour=special_cutoff_hour,
    )
