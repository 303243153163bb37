"""
Report Entity Catalogue

Per-entity description of what can be reported on: the table or view to
read, which fields accept set or range filters and under which wire names,
the searchable columns, the default ordering, the export column manifest and
the typed record model each store row is projected through.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

import re
import math
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type

from pydantic import ValidationError

from ..config import config
from ..exceptions import UnsupportedTemplate
from ..database_schema import FEASIBILITY_SCORE_COLUMNS
from .aggregator import UNCATEGORIZED, average_score
from .exporter import ColumnSpec
from .models import (
    RecordModel,
    YouthProfileRecord,
    BusinessProfileRecord,
    FeasibilityAssessmentRecord,
    MentorRecord,
)
from .query import SortSpec

logger = logging.getLogger(__name__)


# ============================================================================
# VALUE COERCION
# ============================================================================

def as_text(value: Any) -> str:
    """Set value as trimmed text; raises ValueError on blanks and containers"""
    if value is None or isinstance(value, (dict, list, tuple, set)):
        raise ValueError("expected a scalar")
    text = str(value).strip()
    if not text:
        raise ValueError("blank value")
    return text


def as_int(value: Any) -> int:
    """Set value as an integer id"""
    if isinstance(value, bool):
        raise ValueError("boolean is not an id")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError("not a whole number")
        return int(value)
    return int(as_text(value))


def as_number(value: Any) -> float:
    """Range bound as a finite number; whole numbers stay ints"""
    if isinstance(value, bool):
        raise ValueError("boolean is not a number")
    if isinstance(value, (int, float)):
        number = value
    else:
        number = float(as_text(value))
    if not math.isfinite(number):
        raise ValueError("not a finite number")
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


# ============================================================================
# CELL FORMATTERS
# ============================================================================

def format_date(value: Any) -> Optional[str]:
    """Render dates and timestamps as YYYY-MM-DD"""
    if value is None or value == "":
        return None
    if isinstance(value, (datetime, date)):
        return value.strftime('%Y-%m-%d')
    text = str(value)
    if re.match(r"^\d{4}-\d{2}-\d{2}", text):
        return text[:10]
    return text


def format_yes_no(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return "Yes" if value in (True, 1, "1", "true", "True") else "No"


def format_us_date(value: Any) -> Optional[str]:
    """Render dates as MM/DD/YYYY for funder templates; other text passes through"""
    if value is None or value == "":
        return None
    if isinstance(value, (datetime, date)):
        return value.strftime('%m/%d/%Y')
    text = str(value)
    match = re.match(r"^(\d{4})-(\d{2})-(\d{2})", text)
    if match:
        year, month, day = match.groups()
        return f"{month}/{day}/{year}"
    return text


def format_template_gender(value: Any) -> Any:
    """Standardize gender as Male, Female or Other; unrecognised values pass through"""
    if not isinstance(value, str):
        return value
    gender = value.strip().lower()
    if 'female' in gender:
        return "Female"
    if 'male' in gender:
        return "Male"
    if 'other' in gender or 'non-binary' in gender:
        return "Other"
    return value


def format_status_flag(value: Any) -> Any:
    """
    Yes/No status answer. Booleans and their common spellings are
    normalized and a blank answer reads No; null stays empty.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return "Yes" if value else "No"
    text = str(value).strip().lower()
    if text in ('true', 'yes', '1'):
        return "Yes"
    if text in ('false', 'no', '0'):
        return "No"
    return value or "No"


def format_boolean(value: Any) -> Any:
    """True/False as Yes/No, anything else unchanged"""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return value


def category_label(value: Any, categories: Optional[Mapping[int, str]] = None) -> str:
    """Service category name for an id; unknown ids are Uncategorized"""
    categories = categories if categories is not None else config.reports.service_categories
    try:
        return categories.get(as_int(value), UNCATEGORIZED)
    except (TypeError, ValueError):
        return UNCATEGORIZED


# ============================================================================
# CATALOGUE
# ============================================================================

class FieldKind(Enum):
    """How a filter field constrains records"""
    SET = "set"
    RANGE = "range"


@dataclass(frozen=True)
class FilterField:
    """A filterable field: camelCase wire name, store column and value coercion"""
    name: str
    column: str
    kind: FieldKind = FieldKind.SET
    value_type: Callable[[Any], Any] = as_text

    @property
    def keys(self) -> Tuple[str, ...]:
        return (self.name, self.column)


@dataclass(frozen=True)
class ExportTemplate:
    """An export layout: column manifest, download name and row order"""
    name: str
    report_name: str
    columns: Tuple[ColumnSpec, ...]
    sheet_name: Optional[str] = None
    order: Tuple[SortSpec, ...] = ()


@dataclass(frozen=True)
class EntityDefinition:
    """Everything the report engine knows about one reportable entity"""
    name: str
    table: str
    report_name: str
    record_model: Type[RecordModel]
    filter_fields: Tuple[FilterField, ...]
    search_columns: Tuple[str, ...]
    columns: Tuple[ColumnSpec, ...]
    default_order: Tuple[SortSpec, ...] = ()
    base_conditions: Tuple[str, ...] = ()
    date_column: str = "created_at"
    primary_key: str = "id"
    score_fields: Tuple[str, ...] = ()
    computed_columns: Tuple[str, ...] = ()
    group_labels: Mapping[str, Callable[[Any], Optional[str]]] = field(default_factory=dict)
    derive: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None
    templates: Mapping[str, ExportTemplate] = field(default_factory=dict)

    @property
    def set_fields(self) -> Tuple[FilterField, ...]:
        return tuple(f for f in self.filter_fields if f.kind == FieldKind.SET)

    @property
    def range_fields(self) -> Tuple[FilterField, ...]:
        return tuple(f for f in self.filter_fields if f.kind == FieldKind.RANGE)

    @property
    def record_columns(self) -> Tuple[str, ...]:
        return tuple(self.record_model.model_fields)

    @property
    def sortable_columns(self) -> Tuple[str, ...]:
        return tuple(c for c in self.record_columns if c not in self.computed_columns)

    def resolve_column(self, name: Optional[str], computed: bool = False) -> Optional[str]:
        """
        Map a wire name (camelCase column, snake_case column or filter field
        name) to a record column, or None when the entity has no such column.
        """
        if not name or not isinstance(name, str):
            return None
        name = name.strip()
        for filter_field in self.filter_fields:
            if name in filter_field.keys:
                return filter_field.column
        allowed = self.record_columns if computed else self.sortable_columns
        snake = re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()
        for candidate in (name, snake):
            if candidate in allowed:
                return candidate
        return None

    def export_layout(self, template: Any = None) -> ExportTemplate:
        """
        Export layout for a template name; blank or "default" gives the
        entity's own manifest.

        Raises:
            UnsupportedTemplate: for names the entity does not define
        """
        if template is None or (isinstance(template, str) and template.strip().lower() in ("", "default")):
            return ExportTemplate("default", self.report_name, self.columns, order=self.default_order)
        if isinstance(template, str) and template.strip().lower() in self.templates:
            return self.templates[template.strip().lower()]
        raise UnsupportedTemplate(template, self.templates)

    def to_record(self, row: Mapping[str, Any]) -> RecordModel:
        """Project a store row through the entity's typed record model"""
        data = dict(row)
        if self.derive is not None:
            data = self.derive(data)
        try:
            return self.record_model.model_validate(data)
        except ValidationError as e:
            logger.warning(
                f"{self.name} row {data.get(self.primary_key)!r} does not match "
                f"{self.record_model.__name__} ({e.error_count()} errors); keeping raw values"
            )
            known = {k: v for k, v in data.items() if k in self.record_model.model_fields}
            return self.record_model.model_construct(**known)


def _with_overall_score(row: Dict[str, Any]) -> Dict[str, Any]:
    row['overall_score'] = average_score(row, FEASIBILITY_SCORE_COLUMNS)
    return row


# Funder reporting layouts for youth exports, ordered by full name
BY_FULL_NAME = (SortSpec("full_name"),)

MASTERCARD_TEMPLATE = ExportTemplate(
    name="mastercard",
    report_name="mastercard-foundation-template",
    sheet_name="Mastercard_Foundation_Template",
    order=BY_FULL_NAME,
    columns=(
        ColumnSpec("participant_code", "Participant ID"),
        ColumnSpec("first_name", "First Name"),
        ColumnSpec("middle_name", "Middle Name"),
        ColumnSpec("last_name", "Last Name"),
        ColumnSpec("full_name", "Full Name"),
        ColumnSpec("gender", "Gender", format_template_gender),
        ColumnSpec("date_of_birth", "Date of Birth", format_us_date),
        ColumnSpec("age", "Age"),
        ColumnSpec("phone_number", "Phone Number"),
        ColumnSpec("email", "Email Address"),
        ColumnSpec("district", "District"),
        ColumnSpec("town", "Town/City"),
        ColumnSpec("home_address", "Home Address"),
        ColumnSpec("country", "Country"),
        ColumnSpec("dare_model", "DARE Model"),
        ColumnSpec("training_status", "Training Status"),
        ColumnSpec("employment_status", "Employment Status"),
        ColumnSpec("core_skills", "Core Skills"),
        ColumnSpec("industry_expertise", "Industry/Sector"),
        ColumnSpec("highest_education_level", "Education Level"),
        ColumnSpec("active_student_status", "Student Status", format_status_flag),
        ColumnSpec("refugee_status", "Refugee Status", format_status_flag),
        ColumnSpec("idp_status", "IDP Status", format_status_flag),
        ColumnSpec("pwd_status", "Disability Status", format_status_flag),
        ColumnSpec("program_name", "Program Name"),
        ColumnSpec("implementing_partner_name", "Implementing Partner"),
        ColumnSpec("partner_start_date", "Program Start Date", format_us_date),
        ColumnSpec("created_at", "Registration Date", format_us_date),
    ),
)

PARTICIPANT_TEMPLATE = ExportTemplate(
    name="participant",
    report_name="participant-submission-template",
    sheet_name="Participant_Submission_Template",
    order=BY_FULL_NAME,
    columns=(
        ColumnSpec("implementing_partner_name", "Implementing Partner Name"),
        ColumnSpec("first_name", "First Name"),
        ColumnSpec("middle_name", "Middle name or Grandfathers name"),
        ColumnSpec("last_name", "Surname or Fathers name"),
        ColumnSpec("preferred_name", "Preferred Name"),
        ColumnSpec("gender", "Sex"),
        ColumnSpec("date_of_birth", "Date of Birth (MM/DD/YYYY)", format_us_date),
        ColumnSpec("refugee_status", "Refugee Status", format_boolean),
        ColumnSpec("idp_status", "Internally Displaced Person (IDP) status", format_boolean),
        ColumnSpec("community_hosts_refugees",
                   "Is Participant's community hosting Refugees or displaced persons", format_boolean),
        ColumnSpec("pwd_status", "Disability Status", format_boolean),
        ColumnSpec("home_address", "Home Address"),
        ColumnSpec("participant_code", "Unique identifier"),
        ColumnSpec("phone_number", "Primary Phone Number"),
        ColumnSpec("additional_phone_number_1", "Additional Phone Number 1"),
        ColumnSpec("additional_phone_number_2", "Additional Phone Number 2"),
        ColumnSpec("email", "Email"),
        ColumnSpec("country", "Country"),
        ColumnSpec("admin_level_1", "Administrative Level1"),
        ColumnSpec("admin_level_2", "Administrative Level2"),
        ColumnSpec("admin_level_3", "Administrative Level3"),
        ColumnSpec("admin_level_4", "Administrative Level4"),
        ColumnSpec("admin_level_5", "Administrative Level5"),
        ColumnSpec("highest_education_level", "Highest Education Level"),
        ColumnSpec("active_student_status", "Active Student Status", format_boolean),
        ColumnSpec("employment_status", "Employment Status"),
        ColumnSpec("employment_type", "Employment Type"),
        ColumnSpec("industry_expertise", "Sector"),
        ColumnSpec("partner_start_date", "Start Date with Implementing Partner (MM/DD/YYYY)", format_us_date),
        ColumnSpec("program_name", "Program Name"),
        ColumnSpec("program_details", "Program Details"),
        ColumnSpec("program_contact_person", "Program Contact Person"),
        ColumnSpec("program_contact_phone_number", "Program Contact Phone Number"),
        ColumnSpec("new_data_submission", "New Data Submission", format_boolean),
    ),
)


YOUTH = EntityDefinition(
    name="youth",
    table="youth_profiles",
    report_name="youth-report",
    record_model=YouthProfileRecord,
    filter_fields=(
        FilterField("district", "district"),
        FilterField("gender", "gender"),
        FilterField("dareModel", "dare_model"),
        FilterField("trainingStatus", "training_status"),
        FilterField("programStatus", "program_status"),
        FilterField("employmentStatus", "employment_status"),
        FilterField("cohort", "cohort"),
        FilterField("age", "age", FieldKind.RANGE, as_number),
    ),
    search_columns=("full_name", "first_name", "last_name", "participant_code", "core_skills"),
    columns=(
        ColumnSpec("full_name", "Full Name"),
        ColumnSpec("participant_code", "Participant Code"),
        ColumnSpec("district", "District"),
        ColumnSpec("town", "Town"),
        ColumnSpec("gender", "Gender"),
        ColumnSpec("age", "Age"),
        ColumnSpec("phone_number", "Phone Number"),
        ColumnSpec("email", "Email"),
        ColumnSpec("dare_model", "DARE Model"),
        ColumnSpec("training_status", "Training Status"),
        ColumnSpec("employment_status", "Employment Status"),
        ColumnSpec("core_skills", "Core Skills"),
        ColumnSpec("created_at", "Registered", format_date),
    ),
    base_conditions=("COALESCE(is_deleted, 0) = 0",),
    templates={template.name: template for template in (MASTERCARD_TEMPLATE, PARTICIPANT_TEMPLATE)},
)

BUSINESSES = EntityDefinition(
    name="businesses",
    table="business_profiles",
    report_name="business-report",
    record_model=BusinessProfileRecord,
    filter_fields=(
        FilterField("district", "district"),
        FilterField("dareModel", "dare_model"),
        FilterField("sector", "sector"),
        FilterField("registrationStatus", "registration_status"),
        FilterField("enterpriseSize", "enterprise_size"),
        FilterField("serviceCategoryId", "service_category_id", value_type=as_int),
        FilterField("youthInWork", "total_youth_in_work_reported", FieldKind.RANGE, as_number),
    ),
    search_columns=("business_name", "business_description", "business_location", "district"),
    columns=(
        ColumnSpec("business_name", "Business Name"),
        ColumnSpec("district", "District"),
        ColumnSpec("business_location", "Location"),
        ColumnSpec("business_contact", "Contact"),
        ColumnSpec("dare_model", "DARE Model"),
        ColumnSpec("service_category_id", "Service Category", category_label),
        ColumnSpec("sector", "Sector"),
        ColumnSpec("registration_status", "Registration Status"),
        ColumnSpec("enterprise_size", "Enterprise Size"),
        ColumnSpec("total_youth_in_work_reported", "Youth In Work"),
        ColumnSpec("business_start_date", "Start Date", format_date),
        ColumnSpec("business_description", "Description"),
    ),
    group_labels={"service_category_id": category_label},
)

ASSESSMENTS = EntityDefinition(
    name="assessments",
    table="feasibility_assessment_listing",
    report_name="feasibility-assessments",
    record_model=FeasibilityAssessmentRecord,
    filter_fields=(
        FilterField("district", "district"),
        FilterField("status", "status"),
        FilterField("feasibility", "overall_feasibility_percentage", FieldKind.RANGE, as_number),
    ),
    search_columns=("business_name", "business_description"),
    columns=(
        ColumnSpec("business_name", "Business Name"),
        ColumnSpec("district", "District"),
        ColumnSpec("status", "Status"),
        ColumnSpec("assessment_date", "Assessment Date", format_date),
        ColumnSpec("overall_score", "Overall Score"),
        ColumnSpec("overall_feasibility_percentage", "Feasibility (%)"),
        ColumnSpec("updated_at", "Last Updated", format_date),
    ),
    default_order=(SortSpec("COALESCE(updated_at, created_at)", descending=True),),
    score_fields=tuple(FEASIBILITY_SCORE_COLUMNS),
    computed_columns=("overall_score",),
    derive=_with_overall_score,
)

MENTORS = EntityDefinition(
    name="mentors",
    table="mentors",
    report_name="mentor-report",
    record_model=MentorRecord,
    filter_fields=(
        FilterField("district", "assigned_district"),
        FilterField("specialization", "specialization"),
    ),
    search_columns=("name", "email", "specialization"),
    columns=(
        ColumnSpec("name", "Name"),
        ColumnSpec("email", "Email"),
        ColumnSpec("phone", "Phone"),
        ColumnSpec("assigned_district", "District"),
        ColumnSpec("specialization", "Specialization"),
        ColumnSpec("is_active", "Active", format_yes_no),
    ),
)

ENTITIES: Dict[str, EntityDefinition] = {
    entity.name: entity for entity in (YOUTH, BUSINESSES, ASSESSMENTS, MENTORS)
}


def get_entity(name: str) -> Optional[EntityDefinition]:
    """Look up an entity by name, None if unknown"""
    if not isinstance(name, str):
        return None
    return ENTITIES.get(name.strip().lower())
