# Re-export all models for convenient imports
from netdesigner.models.user import User, UserRole, SubscriptionStatus
from netdesigner.models.login_history import LoginHistory
from netdesigner.models.subscription import (
    SubscriptionPlan, BillingPeriod, PaymentAnalytics, PaymentEvent, DeviceType
)
from netdesigner.models.design import NetworkDesign, DesignStatus
from netdesigner.models.team import (
    Team, TeamMember, TeamDesign, TeamRole, Invitation, InvitationRole, InvitationStatus
)
from netdesigner.models.notification import Notification, NotificationType
from netdesigner.models.version import DesignVersion
from netdesigner.models.collaboration import DesignShare, SharePermission, Comment, CommentReply
from netdesigner.models.equipment import (
    Equipment, EquipmentCategory, EquipmentRecommendation, DeviceConfigStatus, design_equipment
)
from netdesigner.models.configuration import (
    ConfigurationTemplate, ConfigDeployment, GeneratedConfig, ConfigType, ConfigSourceType
)
from netdesigner.models.report import NetworkReport, ReportTemplate, ReportType, ReportFormat, TemplateCategory
from netdesigner.models.topology import NetworkTopology
from netdesigner.models.optimization import DesignOptimization, OptimizationType, OptimizationStatus

__all__ = [
    # User
    "User",
    "UserRole",
    "SubscriptionStatus",
    "LoginHistory",
    # Billing
    "SubscriptionPlan",
    "BillingPeriod",
    "PaymentAnalytics",
    "PaymentEvent",
    "DeviceType",
    # Designs
    "NetworkDesign",
    "DesignStatus",
    "DesignVersion",
    "NetworkTopology",
    "DesignOptimization",
    "OptimizationType",
    "OptimizationStatus",
    # Teams
    "Team",
    "TeamMember",
    "TeamDesign",
    "TeamRole",
    "Invitation",
    "InvitationRole",
    "InvitationStatus",
    # Collaboration
    "Notification",
    "NotificationType",
    "DesignShare",
    "SharePermission",
    "Comment",
    "CommentReply",
    # Equipment and configuration
    "Equipment",
    "EquipmentCategory",
    "EquipmentRecommendation",
    "DeviceConfigStatus",
    "design_equipment",
    "ConfigurationTemplate",
    "ConfigDeployment",
    "GeneratedConfig",
    "ConfigType",
    "ConfigSourceType",
    # Reports
    "NetworkReport",
    "ReportTemplate",
    "ReportType",
    "ReportFormat",
    "TemplateCategory",
]
