"""
Database Schema Definition

Schema for the tracker entities the report engine reads: youth profiles,
business profiles, business tracking, mentors and feasibility assessments,
plus the listing view that joins assessments to their business.

Author: DARE YIW Tracker Team
Copyright: © 2025 DARE Youth in Work Programme
"""

from typing import List

# Feasibility sub-score columns, in assessment form order
FEASIBILITY_SCORE_COLUMNS: List[str] = [
    'market_demand',
    'competition_level',
    'customer_accessibility',
    'pricing_power',
    'marketing_effectiveness',
    'location_advantage',
    'resource_availability',
    'production_efficiency',
    'supply_chain',
    'profit_margins',
    'cash_flow',
    'access_to_capital',
    'financial_records',
    'leadership_capability',
    'team_competence',
    'process_documentation',
    'innovation_capacity',
]


def get_schema_sql() -> str:
    """Get the complete database schema SQL"""
    score_columns = ",\n    ".join(f"{col} TEXT" for col in FEASIBILITY_SCORE_COLUMNS)
    return f"""
CREATE TABLE IF NOT EXISTS youth_profiles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    participant_code TEXT,
    full_name TEXT,
    first_name TEXT,
    last_name TEXT,
    middle_name TEXT,
    preferred_name TEXT,
    gender TEXT,
    age INTEGER,
    age_group TEXT,
    date_of_birth DATE,
    district TEXT,
    town TEXT,
    home_address TEXT,
    country TEXT,
    admin_level_1 TEXT,
    admin_level_2 TEXT,
    admin_level_3 TEXT,
    admin_level_4 TEXT,
    admin_level_5 TEXT,
    phone_number TEXT,
    additional_phone_number_1 TEXT,
    additional_phone_number_2 TEXT,
    email TEXT,
    highest_education_level TEXT,
    active_student_status INTEGER,
    core_skills TEXT,
    industry_expertise TEXT,
    business_interest TEXT,
    employment_status TEXT,
    employment_type TEXT,
    refugee_status INTEGER,
    idp_status INTEGER,
    community_hosts_refugees INTEGER,
    pwd_status INTEGER,
    training_status TEXT,
    program_status TEXT,
    dare_model TEXT,
    cohort TEXT,
    implementing_partner_name TEXT,
    partner_start_date DATE,
    program_name TEXT,
    program_details TEXT,
    program_contact_person TEXT,
    program_contact_phone_number TEXT,
    new_data_submission INTEGER,
    is_deleted INTEGER DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_youth_profiles_district ON youth_profiles(district);
CREATE INDEX IF NOT EXISTS idx_youth_profiles_dare_model ON youth_profiles(dare_model);
CREATE INDEX IF NOT EXISTS idx_youth_profiles_created ON youth_profiles(created_at);

CREATE TABLE IF NOT EXISTS business_profiles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    business_name TEXT,
    district TEXT,
    business_location TEXT,
    business_contact TEXT,
    business_description TEXT,
    business_model TEXT,
    dare_model TEXT,
    service_category_id INTEGER,
    registration_status TEXT,
    enterprise_type TEXT,
    enterprise_size TEXT,
    sector TEXT,
    total_youth_in_work_reported INTEGER DEFAULT 0,
    business_start_date DATE,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_business_profiles_district ON business_profiles(district);
CREATE INDEX IF NOT EXISTS idx_business_profiles_dare_model ON business_profiles(dare_model);

CREATE TABLE IF NOT EXISTS business_tracking (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    business_id INTEGER REFERENCES business_profiles(id) ON DELETE CASCADE,
    tracking_date DATE,
    actual_revenue REAL,
    actual_employees INTEGER,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_business_tracking_business ON business_tracking(business_id);

CREATE TABLE IF NOT EXISTS mentors (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT,
    phone TEXT,
    assigned_district TEXT,
    specialization TEXT,
    bio TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS feasibility_assessments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    business_id INTEGER REFERENCES business_profiles(id) ON DELETE SET NULL,
    youth_id INTEGER REFERENCES youth_profiles(id) ON DELETE SET NULL,
    status TEXT DEFAULT 'Draft',
    assessment_date TIMESTAMP,
    overall_feasibility_percentage REAL,
    {score_columns},
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_feasibility_assessments_updated ON feasibility_assessments(updated_at);

CREATE VIEW IF NOT EXISTS feasibility_assessment_listing AS
SELECT
    fa.*,
    bp.business_name AS business_name,
    bp.business_description AS business_description,
    bp.district AS district
FROM feasibility_assessments fa
LEFT JOIN business_profiles bp ON bp.id = fa.business_id
"""
