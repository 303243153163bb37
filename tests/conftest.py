"""
================================================================================
DARE YIW Tracker - Unified Test Configuration and Fixtures
================================================================================
DARE YIW Tracker Team
DARE Youth in Work Programme

Description:
    Shared pytest configuration and fixtures for all tests (unit, integration, API).
    Provides reusable tracker records, a seeded temporary SQLite database and a
    FastAPI test client wired to it.

Fixtures:
    - temp_dir: Temporary directory for test files
    - db_manager: Empty DatabaseManager on a temporary SQLite file
    - seeded_db: DatabaseManager loaded with youth, businesses, tracking,
      assessments and mentors
    - report_service / report_session: Report data access and orchestration
      over the seeded database
    - client: FastAPI test client using the seeded database
    - today: Fixed reference date for period filters

Seed Data:
    - 12 active youth profiles (8 in Bekwai, 4 elsewhere) plus 1 deleted
      Bekwai profile that must never appear in reports
    - 5 businesses, 5 tracking records, 3 feasibility assessments, 3 mentors

================================================================================
"""
import pytest
import tempfile
import shutil
import sys
from pathlib import Path
from datetime import date

# Add project root to path for all tests
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


YOUTH_COLUMNS = [
    'participant_code', 'full_name', 'gender', 'age', 'district', 'dare_model',
    'training_status', 'core_skills', 'is_deleted', 'created_at'
]

YOUTH_ROWS = [
    ('DYIW-001', 'Ama Owusu', 'Female', 18, 'Bekwai', 'Collaborative', 'Completed', 'Tailoring', 0, '2025-01-10 09:00:00'),
    ('DYIW-002', 'Kwame Boateng', 'Male', 20, 'Bekwai', 'Collaborative', 'Completed', 'Carpentry', 0, '2025-02-11 09:00:00'),
    ('DYIW-003', 'Akosua Asante', 'Female', 22, 'Bekwai', 'Collaborative', 'In Progress', 'Hairdressing', 0, '2025-03-12 09:00:00'),
    ('DYIW-004', 'Yaw Mensah', 'Male', 24, 'Bekwai', 'Collaborative', 'In Progress', 'Welding', 0, '2025-04-13 09:00:00'),
    ('DYIW-005', 'Abena Darko', 'Female', 26, 'Bekwai', 'MakerSpace', 'Completed', 'Soap making', 0, '2025-05-14 09:00:00'),
    ('DYIW-006', 'Kofi Appiah', 'Male', 30, 'Bekwai', 'MakerSpace', 'In Progress', 'Masonry', 0, '2025-06-15 09:00:00'),
    ('DYIW-007', 'Efua Ansah', 'Female', 35, 'Bekwai', 'MakerSpace', None, 'Baking', 0, '2025-09-20 09:00:00'),
    ('DYIW-008', 'Kojo Frimpong', 'Male', 45, 'Bekwai', 'MakerSpace', None, 'Tailoring', 0, '2025-10-01 09:00:00'),
    ('DYIW-009', 'Fuseini Alhassan', 'Male', 19, 'Gushegu', 'Madam Anchor', 'Completed', 'Shea butter processing', 0, '2025-07-01 09:00:00'),
    ('DYIW-010', 'Ayishetu Issah', 'Female', 23, 'Gushegu', 'Madam Anchor', 'Not Started', 'Tailoring', 0, '2025-08-01 09:00:00'),
    ('DYIW-011', 'Esi Tetteh', 'Female', 40, 'Lower Manya Krobo', 'Collaborative', 'In Progress', 'Bead making', 0, '2025-09-25 09:00:00'),
    ('DYIW-012', 'Nii Kwao', 'Male', 17, 'Yilo Krobo', 'MakerSpace', 'Completed', 'Electrical', 0, '2025-10-10 09:00:00'),
    ('DYIW-013', 'Removed Profile', 'Male', 21, 'Bekwai', 'Collaborative', 'Completed', 'Tailoring', 1, '2025-10-12 09:00:00'),
]

BUSINESS_COLUMNS = [
    'business_name', 'district', 'business_location', 'business_description', 'business_model',
    'dare_model', 'service_category_id', 'sector', 'total_youth_in_work_reported', 'created_at'
]

BUSINESS_ROWS = [
    ('Owusu Stitches', 'Bekwai', 'Bekwai Central', 'Custom tailoring and school uniforms',
     'New startup', 'Collaborative', 3, 'Fashion', 4, '2025-02-01 10:00:00'),
    ('Boateng Woodworks', 'Bekwai', 'Anwiankwanta', 'Furniture and carpentry',
     'Growing workshop', 'Collaborative', 1, 'Construction', 6, '2025-03-01 10:00:00'),
    ('Gushegu Shea Collective', 'Gushegu', 'Gushegu Market', 'Shea butter processing',
     'Established cooperative', 'Madam Anchor', 2, 'Agro-processing', 12, '2025-04-01 10:00:00'),
    ('Krobo Beads', 'Lower Manya Krobo', 'Odumase', 'Traditional bead making, exports',
     'Developing export line', 'MakerSpace', 5, 'Crafts', 3, '2025-05-01 10:00:00'),
    ('Yilo Glam', 'Yilo Krobo', 'Somanya', 'Hair and beauty salon',
     'Salon', 'MakerSpace', None, 'Beauty', 2, '2025-06-01 10:00:00'),
]

TRACKING_ROWS = [
    {'business_id': 1, 'tracking_date': '2025-03-01', 'actual_revenue': 300.0, 'actual_employees': 2},
    {'business_id': 1, 'tracking_date': '2025-06-01', 'actual_revenue': 450.0, 'actual_employees': 3},
    {'business_id': 2, 'tracking_date': '2025-03-15', 'actual_revenue': 900.0, 'actual_employees': 4},
    {'business_id': 2, 'tracking_date': '2025-06-15', 'actual_revenue': 1200.0, 'actual_employees': 5},
    {'business_id': 3, 'tracking_date': '2025-06-20', 'actual_revenue': 800.0, 'actual_employees': 10},
]

ASSESSMENT_ROWS = [
    {'business_id': 1, 'status': 'Completed', 'market_demand': '3', 'competition_level': '4',
     'pricing_power': '5', 'supply_chain': '0', 'overall_feasibility_percentage': 80.0,
     'created_at': '2025-01-01 08:00:00', 'updated_at': '2025-05-01 08:00:00'},
    {'business_id': 3, 'status': 'Draft', 'market_demand': '0', 'competition_level': '0',
     'overall_feasibility_percentage': 0.0,
     'created_at': '2025-06-01 08:00:00', 'updated_at': None},
    {'business_id': 2, 'status': 'Completed', 'market_demand': '4', 'cash_flow': 'abc',
     'team_competence': '2', 'overall_feasibility_percentage': 60.0,
     'created_at': '2025-01-01 08:00:00', 'updated_at': '2025-04-01 08:00:00'},
]

MENTOR_ROWS = [
    {'name': 'Grace Adjei', 'email': 'grace.adjei@example.org', 'assigned_district': 'Bekwai',
     'specialization': 'Business Development', 'is_active': 1},
    {'name': 'Ibrahim Yakubu', 'email': 'ibrahim.yakubu@example.org', 'assigned_district': 'Gushegu',
     'specialization': 'Agribusiness', 'is_active': 1},
    {'name': 'Lydia Nartey', 'email': 'lydia.nartey@example.org', 'assigned_district': 'Yilo Krobo',
     'specialization': 'Marketing', 'is_active': 0},
]


def youth_records():
    return [dict(zip(YOUTH_COLUMNS, row)) for row in YOUTH_ROWS]


def business_records():
    return [dict(zip(BUSINESS_COLUMNS, row)) for row in BUSINESS_ROWS]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests"""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def today():
    """Fixed reference date for period filters"""
    return date(2025, 10, 19)


@pytest.fixture
def report_config():
    """Default report settings, independent of the environment"""
    from dare_tracker.config import ReportConfig
    return ReportConfig()


@pytest.fixture
def db_manager(temp_dir):
    """Empty database with the tracker schema"""
    from dare_tracker.database import DatabaseManager
    manager = DatabaseManager(temp_dir / "dare_tracker_test.db")
    yield manager
    manager.close()


@pytest.fixture
def seeded_db(db_manager):
    """Database loaded with the shared seed records"""
    seeds = [
        ('youth_profiles', youth_records()),
        ('business_profiles', business_records()),
        ('business_tracking', TRACKING_ROWS),
        ('feasibility_assessments', ASSESSMENT_ROWS),
        ('mentors', MENTOR_ROWS),
    ]
    for table_name, records in seeds:
        result = db_manager.get_repository(table_name).insert_records(records)
        assert result.success, result.error_message
    return db_manager


@pytest.fixture
def report_service(seeded_db):
    """Report data access over the seeded database"""
    from dare_tracker.reports.service import ReportService
    return ReportService(seeded_db)


@pytest.fixture
def report_session(report_service, report_config):
    """Report flows over the seeded database"""
    from dare_tracker.reports.handlers import ReportSession
    return ReportSession(report_service, report_config)


@pytest.fixture
def client(report_service):
    """Create a FastAPI test client backed by the seeded database"""
    from fastapi.testclient import TestClient
    from dare_tracker.app import app
    from dare_tracker.reports.router import get_report_service

    app.dependency_overrides[get_report_service] = lambda: report_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def project_root_path():
    """Return the project root path"""
    return project_root
