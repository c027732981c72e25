from netdesigner.modules.auth.dependencies import (
    get_current_user,
    get_current_admin,
    require_role,
    require_subscription,
    check_design_limit,
)
