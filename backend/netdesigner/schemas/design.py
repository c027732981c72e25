"""Pydantic schemas for network designs"""
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime


TotalUsers = Literal["1-50", "51-200", "201-500", "500+"]
PrivateBlock = Literal["10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"]

IP_SCHEME_PATTERN = (
    r"^((25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
    r"(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)/\d{1,2}$"
)


# ==================== Existing network ====================

class CurrentDevice(BaseModel):
    type: Literal["router", "switch", "firewall", "server", "access-point"]
    model: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)


class ExistingNetworkDetails(BaseModel):
    current_topology: Literal["star", "bus", "ring", "mesh", "hybrid", "other"]
    current_issues: List[
        Literal["bandwidth", "latency", "security", "reliability", "scalability", "management"]
    ] = []
    current_ip_scheme: Optional[str] = Field(None, pattern=IP_SCHEME_PATTERN)
    current_devices: List[CurrentDevice] = []


# ==================== Requirements ====================

class Segment(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    type: Literal["department", "function", "security", "guest", "iot"]
    users: int = Field(..., ge=1)
    bandwidth_priority: Literal["low", "medium", "high", "critical"] = "medium"
    isolation_level: Literal["none", "vlans", "physical", "full"] = "none"

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Segment name must be at least 2 characters")
        return v


class Bandwidth(BaseModel):
    upload: float = Field(..., ge=1)
    download: float = Field(..., ge=1)
    symmetric: bool = False


class Services(BaseModel):
    cloud: List[Literal["saas", "iaas", "paas", "storage", "backup"]] = []
    on_premise: List[Literal["erp", "crm", "fileserver", "email", "database"]] = []
    network: List[Literal["dhcp", "dns", "vpn", "proxy", "load-balancing"]] = []


class IPScheme(BaseModel):
    private: PrivateBlock = "192.168.0.0/16"
    public_ips: int = Field(default=0, ge=0)
    ipv6: bool = False


class SecurityRequirements(BaseModel):
    firewall: Literal["none", "basic", "enterprise", "utm"] = "basic"
    ids: bool = False
    ips: bool = False
    content_filtering: bool = False
    remote_access: Literal["none", "vpn", "rdp", "citrix"] = "none"


class Redundancy(BaseModel):
    internet: bool = False
    core_switching: bool = False
    power: bool = False


class Requirements(BaseModel):
    total_users: TotalUsers
    wired_users: int = Field(default=0, ge=0)
    wireless_users: int = Field(default=0, ge=0)
    network_segmentation: bool = False
    segments: List[Segment] = []
    bandwidth: Bandwidth
    services: Services = Field(default_factory=Services)
    ip_scheme: IPScheme = Field(default_factory=IPScheme)
    security_requirements: SecurityRequirements = Field(default_factory=SecurityRequirements)
    redundancy: Redundancy = Field(default_factory=Redundancy)
    budget_range: Literal["low", "medium", "high", "unlimited"] = "medium"

    @model_validator(mode="after")
    def check_segments(self):
        if self.network_segmentation and not self.segments:
            raise ValueError("At least one segment is required when network segmentation is enabled")
        if not self.network_segmentation and self.segments:
            raise ValueError("Segments must be empty when network segmentation is disabled")
        return self


# ==================== Design payloads ====================

class DesignBase(BaseModel):
    design_name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_existing_network: bool = False
    existing_network_details: Optional[ExistingNetworkDetails] = None
    requirements: Requirements

    @field_validator("design_name")
    @classmethod
    def strip_design_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Design name must be at least 3 characters")
        return v

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class DesignCreate(DesignBase):
    """Create a design; unknown keys are dropped"""

    @model_validator(mode="after")
    def drop_details_for_new_network(self):
        if not self.is_existing_network:
            self.existing_network_details = None
        return self


class DesignUpdate(BaseModel):
    """Partial update; any subset of fields"""
    design_name: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_existing_network: Optional[bool] = None
    existing_network_details: Optional[ExistingNetworkDetails] = None
    requirements: Optional[Requirements] = None
    design_status: Optional[Literal["draft", "in_progress", "completed", "archived"]] = None

    @field_validator("design_name")
    @classmethod
    def strip_design_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Design name must be at least 3 characters")
        return v


class DesignResponse(BaseModel):
    id: str
    user_id: str
    team_id: Optional[str] = None
    design_name: str
    description: Optional[str] = None
    is_existing_network: bool = False
    existing_network_details: Optional[Dict[str, Any]] = None
    requirements: Dict[str, Any]
    design_status: str
    optimized: bool = False
    version: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LimitInfo(BaseModel):
    current: int
    limit: int
    remaining: int


class DesignCreateResponse(BaseModel):
    design: DesignResponse
    limit_info: LimitInfo
