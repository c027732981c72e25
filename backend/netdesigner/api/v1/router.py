from fastapi import APIRouter
from netdesigner.api.v1.endpoints import (
    users, networkdesign, teams, invitations, notifications, versions, collaboration, equipment,
    configurations, generated_configs, report, report_templates, subscription, dashboard, stats,
    login_history, visualization, optimizations, ws,
)

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(networkdesign.router, prefix="/networkdesign", tags=["Network Designs"])
api_router.include_router(teams.router, prefix="/teams", tags=["Teams"])
api_router.include_router(invitations.router, prefix="/invitations", tags=["Invitations"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(versions.router, tags=["Design Versions"])
api_router.include_router(collaboration.router, prefix="/collaboration", tags=["Collaboration"])
api_router.include_router(equipment.router, prefix="/equipment", tags=["Equipment"])
api_router.include_router(configurations.router, prefix="/configurations", tags=["Configuration Templates"])
api_router.include_router(generated_configs.router, prefix="/generated-configs", tags=["Generated Configurations"])
api_router.include_router(report.router, prefix="/report", tags=["Reports"])
api_router.include_router(report_templates.router, prefix="/report-templates", tags=["Report Templates"])
api_router.include_router(subscription.router, prefix="/subscription", tags=["Subscriptions"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])
api_router.include_router(stats.router, prefix="/stats", tags=["Stats"])
api_router.include_router(login_history.router, prefix="/login-history", tags=["Login History"])
api_router.include_router(visualization.router, prefix="/visualization", tags=["Visualization"])
api_router.include_router(optimizations.router, prefix="/optimizations", tags=["Optimizations"])
api_router.include_router(ws.router, tags=["Realtime Collaboration"])
