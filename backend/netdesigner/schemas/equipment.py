"""Pydantic schemas for the equipment catalogue"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime
import ipaddress


Category = Literal["switch", "router", "firewall", "ap", "server"]
PriceRange = Literal["$", "$$", "$$$", "$$$$"]


def _check_ipv4(v: Optional[str], label: str) -> Optional[str]:
    if v in (None, ""):
        return None
    try:
        ipaddress.IPv4Address(v)
    except ValueError:
        raise ValueError(f"Invalid {label} IP address format")
    return v


class Specs(BaseModel):
    ports: Optional[int] = Field(None, ge=0)
    port_speed: Optional[str] = None
    throughput: Optional[str] = None
    wireless_standard: Optional[str] = None
    vlan_support: Optional[bool] = None
    layer: Optional[int] = Field(None, ge=1, le=7)
    poe: Optional[bool] = None
    power_consumption: Optional[str] = None
    management_ip: Optional[str] = None
    default_gateway: Optional[str] = None
    supports_ipv6: Optional[bool] = None
    rack_unit_size: Optional[int] = None
    form_factor: Optional[Literal["desktop", "rackmount", "blade", "modular", "other"]] = None
    processor: Optional[str] = None
    memory: Optional[str] = None
    storage: Optional[str] = None
    operating_system: Optional[str] = None

    @field_validator("management_ip")
    @classmethod
    def validate_management_ip(cls, v):
        return _check_ipv4(v, "management")


class Warranty(BaseModel):
    months: int = Field(..., ge=0)
    type: Literal["limited", "lifetime", "extended"] = "limited"


class Location(BaseModel):
    rack: Optional[str] = None
    position: Optional[int] = None
    room: Optional[str] = None
    building: Optional[str] = None
    site: Optional[str] = None


class NetworkConfig(BaseModel):
    ip_address: Optional[str] = None
    subnet_mask: Optional[str] = None
    mac_address: Optional[str] = None
    dns_servers: List[str] = []
    ntp_servers: List[str] = []

    @field_validator("ip_address")
    @classmethod
    def validate_ip_address(cls, v):
        return _check_ipv4(v, "network")


class Maintenance(BaseModel):
    last_maintained: Optional[datetime] = None
    maintenance_interval: Optional[int] = None
    maintenance_notes: Optional[str] = None


class EquipmentCreate(BaseModel):
    category: Category
    manufacturer: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    specs: Specs = Field(default_factory=Specs)
    price_range: PriceRange = "$$"
    typical_use_case: Optional[str] = None
    image_url: Optional[str] = None
    datasheet_url: Optional[str] = None
    is_popular: bool = False
    release_year: Optional[int] = Field(None, ge=1970, le=2100)
    end_of_life: Optional[datetime] = None
    warranty: Optional[Warranty] = None
    is_public: bool = False
    location: Optional[Location] = None
    network_config: Optional[NetworkConfig] = None
    maintenance: Optional[Maintenance] = None


class EquipmentUpdate(BaseModel):
    category: Optional[Category] = None
    manufacturer: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    specs: Optional[Specs] = None
    price_range: Optional[PriceRange] = None
    typical_use_case: Optional[str] = None
    image_url: Optional[str] = None
    datasheet_url: Optional[str] = None
    is_popular: Optional[bool] = None
    release_year: Optional[int] = Field(None, ge=1970, le=2100)
    end_of_life: Optional[datetime] = None
    warranty: Optional[Warranty] = None
    is_public: Optional[bool] = None
    is_active: Optional[bool] = None
    location: Optional[Location] = None
    network_config: Optional[NetworkConfig] = None
    maintenance: Optional[Maintenance] = None


class EquipmentAssignment(BaseModel):
    equipment_id: str
    design_id: str


class EquipmentResponse(BaseModel):
    id: str
    category: str
    manufacturer: str
    model: str
    display_name: str
    specs: Dict[str, Any] = {}
    price_range: str
    typical_use_case: Optional[str] = None
    image_url: Optional[str] = None
    datasheet_url: Optional[str] = None
    is_popular: bool = False
    release_year: Optional[int] = None
    end_of_life: Optional[datetime] = None
    warranty: Optional[Dict[str, Any]] = None
    warranty_display: str
    created_by: Optional[str] = None
    is_system_owned: bool = False
    is_public: bool = False
    is_active: bool = True
    location: Optional[Dict[str, Any]] = None
    network_config: Optional[Dict[str, Any]] = None
    maintenance: Optional[Dict[str, Any]] = None
    configurations: List[Dict[str, Any]] = []
    design_ids: List[str] = []
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EquipmentPage(BaseModel):
    count: int
    total: int
    page: int
    pages: int
    data: List[EquipmentResponse]


class RecommendationEntry(BaseModel):
    category: str
    recommended_equipment: Optional[EquipmentResponse] = None
    alternatives: List[EquipmentResponse] = []
    quantity: int
    placement: Optional[str] = None
    justification: Optional[str] = None
    required_ports: Optional[int] = None
    required_speed: Optional[str] = None


class RecommendationResponse(BaseModel):
    design_id: str
    generated_at: Optional[datetime] = None
    recommendations: List[RecommendationEntry]
