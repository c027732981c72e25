# Pydantic schemas
from netdesigner.schemas.user import (
    UserRegister,
    UserLogin,
    UserResponse,
    LoginResponse,
    RegisterResponse,
    TokenPair,
)
from netdesigner.schemas.design import (
    DesignCreate,
    DesignUpdate,
    DesignResponse,
    Requirements,
)
from netdesigner.schemas.team import (
    TeamCreate,
    TeamUpdate,
    TeamResponse,
    InvitationCreate,
    InvitationResponse,
)
