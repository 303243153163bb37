"""
================================================================================
DARE YIW Tracker - Report Entity Catalogue Unit Tests
================================================================================
DARE YIW Tracker Team
DARE Youth in Work Programme

Description:
    Unit tests for the entity catalogue: lookup, column resolution, value
    coercion, cell formatters, export templates and typed record projection.

================================================================================
"""
import pytest
from datetime import date, datetime

from dare_tracker.exceptions import UnsupportedTemplate
from dare_tracker.reports.aggregator import UNCATEGORIZED
from dare_tracker.reports.entities import (
    ENTITIES,
    YOUTH,
    BUSINESSES,
    ASSESSMENTS,
    MENTORS,
    get_entity,
    as_text,
    as_int,
    as_number,
    format_date,
    format_yes_no,
    format_us_date,
    format_template_gender,
    format_status_flag,
    format_boolean,
    category_label,
)
from dare_tracker.reports.models import YouthProfileRecord, FeasibilityAssessmentRecord


class TestCatalogue:
    """Test entity lookup and catalogue consistency"""

    def test_known_entities(self):
        assert set(ENTITIES) == {'youth', 'businesses', 'assessments', 'mentors'}

    @pytest.mark.parametrize('name', ['youth', 'YOUTH', ' mentors '])
    def test_lookup_is_case_insensitive(self, name):
        assert get_entity(name) is not None

    @pytest.mark.parametrize('name', ['programs', '', None, 5])
    def test_unknown_entity(self, name):
        assert get_entity(name) is None

    @pytest.mark.parametrize('entity', list(ENTITIES.values()), ids=list(ENTITIES))
    def test_manifest_and_filters_reference_record_columns(self, entity):
        columns = set(entity.record_columns)
        assert {c.key for c in entity.columns} <= columns
        assert {f.column for f in entity.filter_fields} <= columns
        assert set(entity.search_columns) <= columns

    def test_resolve_column(self):
        assert YOUTH.resolve_column('dareModel') == 'dare_model'
        assert YOUTH.resolve_column('full_name') == 'full_name'
        assert YOUTH.resolve_column('fullName') == 'full_name'
        assert MENTORS.resolve_column('district') == 'assigned_district'
        assert YOUTH.resolve_column('nope') is None
        assert YOUTH.resolve_column(None) is None

    def test_computed_column_resolves_only_when_allowed(self):
        assert ASSESSMENTS.resolve_column('overallScore') is None
        assert ASSESSMENTS.resolve_column('overallScore', computed=True) == 'overall_score'


class TestCoercion:
    """Test filter value coercion"""

    def test_as_text(self):
        assert as_text('  Bekwai ') == 'Bekwai'
        assert as_text(3) == '3'
        for bad in ('', '   ', None, {'a': 1}, ['a']):
            with pytest.raises(ValueError):
                as_text(bad)

    def test_as_int(self):
        assert as_int('4') == 4
        assert as_int(4.0) == 4
        for bad in (True, 4.5, 'four'):
            with pytest.raises(ValueError):
                as_int(bad)

    def test_as_number(self):
        assert as_number('20') == 20
        assert isinstance(as_number('20'), int)
        assert as_number('20.5') == 20.5
        for bad in (False, 'inf', 'abc', float('nan')):
            with pytest.raises(ValueError):
                as_number(bad)


class TestFormatters:
    """Test export cell formatters"""

    @pytest.mark.parametrize('value,expected', [
        (datetime(2025, 1, 10, 9, 30), '2025-01-10'),
        (date(2025, 1, 10), '2025-01-10'),
        ('2025-01-10 09:30:00', '2025-01-10'),
        ('last week', 'last week'),
        (None, None),
        ('', None),
    ])
    def test_format_date(self, value, expected):
        assert format_date(value) == expected

    @pytest.mark.parametrize('value,expected', [(1, 'Yes'), (True, 'Yes'), (0, 'No'), (None, None)])
    def test_format_yes_no(self, value, expected):
        assert format_yes_no(value) == expected

    @pytest.mark.parametrize('value,expected', [
        (date(2006, 3, 14), '03/14/2006'),
        (datetime(2025, 1, 10, 9, 30), '01/10/2025'),
        ('2025-02-01 08:00:00', '02/01/2025'),
        ('unknown', 'unknown'),
        ('', None),
        (None, None),
    ])
    def test_format_us_date(self, value, expected):
        assert format_us_date(value) == expected

    @pytest.mark.parametrize('value,expected', [
        ('female', 'Female'), (' MALE ', 'Male'), ('Non-binary', 'Other'), ('F', 'F'), (None, None),
    ])
    def test_format_template_gender(self, value, expected):
        assert format_template_gender(value) == expected

    @pytest.mark.parametrize('value,expected', [
        (True, 'Yes'), (False, 'No'), ('yes', 'Yes'), ('0', 'No'), ('', 'No'), ('Pending', 'Pending'), (None, None),
    ])
    def test_format_status_flag(self, value, expected):
        assert format_status_flag(value) == expected

    def test_format_boolean(self):
        assert [format_boolean(v) for v in (True, False, 'Yes', None)] == ['Yes', 'No', 'Yes', None]

    def test_category_label(self):
        categories = {1: 'Building & Construction', 2: 'Food & Beverage'}
        assert category_label(1, categories) == 'Building & Construction'
        assert category_label('2', categories) == 'Food & Beverage'
        assert category_label(9, categories) == UNCATEGORIZED
        assert category_label(None, categories) == UNCATEGORIZED
        assert category_label('x', categories) == UNCATEGORIZED

    def test_category_label_uses_configured_names(self):
        assert category_label(5) == 'Media & Creative Arts'


class TestRecordProjection:
    """Test typed record projection"""

    def test_youth_row_becomes_typed_record(self):
        row = {'id': 1, 'full_name': 'Ama Owusu', 'age': 18, 'is_deleted': 0, 'created_at': '2025-01-10 09:00:00'}
        record = YOUTH.to_record(row)

        assert isinstance(record, YouthProfileRecord)
        assert record.full_name == 'Ama Owusu'
        assert 'is_deleted' not in record.model_dump()
        assert record.model_dump(by_alias=True)['fullName'] == 'Ama Owusu'

    def test_row_is_not_mutated(self):
        row = {'id': 1, 'market_demand': '4'}
        ASSESSMENTS.to_record(row)
        assert row == {'id': 1, 'market_demand': '4'}

    def test_assessment_overall_score_is_derived(self):
        record = ASSESSMENTS.to_record({'id': 1, 'market_demand': '3', 'cash_flow': 'abc', 'team_competence': 5})
        assert isinstance(record, FeasibilityAssessmentRecord)
        assert record.overall_score == 4.0

    def test_mismatched_row_keeps_raw_values(self):
        record = YOUTH.to_record({'id': 2, 'age': 'unknown', 'full_name': 'Kwame'})
        assert record.full_name == 'Kwame'
        assert record.age == 'unknown'

    def test_records_are_frozen(self):
        record = BUSINESSES.to_record({'id': 1, 'business_name': 'Owusu Stitches'})
        with pytest.raises(Exception):
            record.business_name = 'Changed'


class TestExportTemplates:
    """Test export layouts and funder templates"""

    @pytest.mark.parametrize('name', list(YOUTH.templates))
    def test_template_columns_reference_record_columns(self, name):
        template = YOUTH.templates[name]
        assert {c.key for c in template.columns} <= set(YOUTH.record_columns)
        assert template.sheet_name

    @pytest.mark.parametrize('template', [None, '', '  ', 'default', 'DEFAULT'])
    def test_default_layout_is_entity_manifest(self, template):
        layout = YOUTH.export_layout(template)

        assert layout.name == 'default'
        assert layout.report_name == 'youth-report'
        assert layout.columns == YOUTH.columns
        assert layout.order == YOUTH.default_order

    def test_template_lookup_is_case_insensitive(self):
        layout = YOUTH.export_layout(' Mastercard ')

        assert layout.report_name == 'mastercard-foundation-template'
        assert layout.columns[0].title == 'Participant ID'
        assert [term.expression for term in layout.order] == ['full_name']

    def test_unknown_template(self):
        with pytest.raises(UnsupportedTemplate) as exc_info:
            YOUTH.export_layout('donor')

        assert exc_info.value.requested == 'donor'
        assert exc_info.value.supported == ['mastercard', 'participant']

    @pytest.mark.parametrize('template', [5, ['mastercard']])
    def test_non_text_template_is_unsupported(self, template):
        with pytest.raises(UnsupportedTemplate):
            YOUTH.export_layout(template)

    def test_entity_without_templates(self):
        assert MENTORS.export_layout().report_name == 'mentor-report'
        with pytest.raises(UnsupportedTemplate) as exc_info:
            MENTORS.export_layout('mastercard')
        assert exc_info.value.supported == []
        assert 'no templates available' in str(exc_info.value)
