"""
Report Models

Pydantic models for report API request/response validation and documentation.
Defines the typed record shape of each reportable entity and the request and
response bodies of the list, export and filter-options endpoints.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

from datetime import date, datetime
from typing import Optional, List, Dict, Any, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Timestamps arrive from SQLite as ISO strings and from fixtures as date objects
DateValue = Optional[Union[datetime, date, str]]
# Sub-scores are stored as free text on the assessment form
ScoreValue = Optional[Union[int, float, str]]
# Yes/No answers are stored as 0/1 but older imports carry free text
FlagValue = Optional[Union[bool, str]]


class RecordModel(BaseModel):
    """Base for typed entity records: snake_case fields, camelCase on the wire"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    id: Optional[int] = None
    created_at: DateValue = None


class YouthProfileRecord(RecordModel):
    """Youth participant profile"""
    participant_code: Optional[str] = None
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    preferred_name: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    age_group: Optional[str] = None
    date_of_birth: DateValue = None
    district: Optional[str] = None
    town: Optional[str] = None
    home_address: Optional[str] = None
    country: Optional[str] = None
    admin_level_1: Optional[str] = None
    admin_level_2: Optional[str] = None
    admin_level_3: Optional[str] = None
    admin_level_4: Optional[str] = None
    admin_level_5: Optional[str] = None
    phone_number: Optional[str] = None
    additional_phone_number_1: Optional[str] = None
    additional_phone_number_2: Optional[str] = None
    email: Optional[str] = None
    highest_education_level: Optional[str] = None
    active_student_status: FlagValue = None
    core_skills: Optional[str] = None
    industry_expertise: Optional[str] = None
    business_interest: Optional[str] = None
    employment_status: Optional[str] = None
    employment_type: Optional[str] = None
    refugee_status: FlagValue = None
    idp_status: FlagValue = None
    community_hosts_refugees: FlagValue = None
    pwd_status: FlagValue = None
    training_status: Optional[str] = None
    program_status: Optional[str] = None
    dare_model: Optional[str] = None
    cohort: Optional[str] = None
    implementing_partner_name: Optional[str] = None
    partner_start_date: DateValue = None
    program_name: Optional[str] = None
    program_details: Optional[str] = None
    program_contact_person: Optional[str] = None
    program_contact_phone_number: Optional[str] = None
    new_data_submission: FlagValue = None
    updated_at: DateValue = None


class BusinessProfileRecord(RecordModel):
    """Business profile"""
    business_name: Optional[str] = None
    district: Optional[str] = None
    business_location: Optional[str] = None
    business_contact: Optional[str] = None
    business_description: Optional[str] = None
    business_model: Optional[str] = None
    dare_model: Optional[str] = None
    service_category_id: Optional[int] = None
    registration_status: Optional[str] = None
    enterprise_type: Optional[str] = None
    enterprise_size: Optional[str] = None
    sector: Optional[str] = None
    total_youth_in_work_reported: Optional[int] = None
    business_start_date: DateValue = None
    updated_at: DateValue = None


class FeasibilityAssessmentRecord(RecordModel):
    """Feasibility assessment joined with its business"""
    business_id: Optional[int] = None
    youth_id: Optional[int] = None
    business_name: Optional[str] = None
    business_description: Optional[str] = None
    district: Optional[str] = None
    status: Optional[str] = None
    assessment_date: DateValue = None
    overall_feasibility_percentage: Optional[float] = None
    overall_score: Optional[float] = None
    market_demand: ScoreValue = None
    competition_level: ScoreValue = None
    customer_accessibility: ScoreValue = None
    pricing_power: ScoreValue = None
    marketing_effectiveness: ScoreValue = None
    location_advantage: ScoreValue = None
    resource_availability: ScoreValue = None
    production_efficiency: ScoreValue = None
    supply_chain: ScoreValue = None
    profit_margins: ScoreValue = None
    cash_flow: ScoreValue = None
    access_to_capital: ScoreValue = None
    financial_records: ScoreValue = None
    leadership_capability: ScoreValue = None
    team_competence: ScoreValue = None
    process_documentation: ScoreValue = None
    innovation_capacity: ScoreValue = None
    updated_at: DateValue = None


class MentorRecord(RecordModel):
    """Mentor"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    assigned_district: Optional[str] = None
    specialization: Optional[str] = None
    bio: Optional[str] = None
    is_active: Optional[bool] = None


class RequestModel(BaseModel):
    """Base for request bodies; pagination stays loosely typed so bad input degrades instead of failing"""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ReportQueryRequest(RequestModel):
    """List flow request body"""
    filters: Any = Field(default_factory=dict, description="Field name to value list, range or keyword")
    page: Any = Field(None, description="1-based page number")
    page_size: Any = Field(None, alias="pageSize", description="Records per page")
    aggregate: Optional[str] = Field(None, description="Aggregation scope: 'page' or 'full'")
    group_by: Optional[str] = Field(None, alias="groupBy", description="Field to group-by-count")
    sort_by: Any = Field(None, alias="sortBy", description="Column to sort by")
    sort_direction: Any = Field(None, alias="sortDirection", description="'asc' or 'desc'")


class ExportRequest(RequestModel):
    """Export flow request body"""
    filters: Any = Field(default_factory=dict)
    format: Any = Field("excel", description="Export format: excel, csv or json")
    sort_by: Any = Field(None, alias="sortBy")
    sort_direction: Any = Field(None, alias="sortDirection")
    template: Any = Field(None, description="Named export layout, e.g. mastercard or participant")


class ReportResponse(BaseModel):
    """List flow response"""
    model_config = ConfigDict(populate_by_name=True)

    records: List[Dict[str, Any]]
    total: int
    page: int
    page_size: int = Field(alias="pageSize")
    aggregate: Optional[Dict[str, Any]] = None
    applied_filters: Optional[Dict[str, Any]] = Field(None, alias="appliedFilters")


class FilterOptions(BaseModel):
    """Available filter values per set-typed field"""
    entity: str
    options: Dict[str, List[Any]]
