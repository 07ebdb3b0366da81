"""
Unit tests for the eligibility filter.
"""

import pytest

from transition_sync.core.eligibility import EligibilityFilter
from transition_sync.core.models import EligibilityDecision


@pytest.fixture
def eligibility(sync_settings):
    return EligibilityFilter.from_settings(sync_settings)


@pytest.mark.unit
class TestDecide:
    """Tests for single-student decisions"""

    def test_include_with_registration(self, eligibility, make_record):
        record = make_record(123456, registrations={"Home Campus": "North"})
        assert eligibility.decide(record) == EligibilityDecision.INCLUDE

    def test_include_with_published_row_only(self, eligibility, make_record):
        record = make_record(123456, tentative={"LAST": "Doe"})
        assert eligibility.decide(record) == EligibilityDecision.INCLUDE

    def test_exclude_other_without_enrollment(self, eligibility, make_record):
        record = make_record(123456, contacts={"Student Email": "s@example.org"})
        assert eligibility.decide(record) == EligibilityDecision.EXCLUDE_OTHER

    def test_withdrawn_without_schedule(self, eligibility, make_record):
        record = make_record(123456, registrations={}, withdrawn={"STUDENT ID": "123456"})
        assert eligibility.decide(record) == EligibilityDecision.EXCLUDE_WITHDRAWN

    def test_withdrawn_with_only_withdrawn_entries(self, eligibility, make_record):
        record = make_record(
            123456,
            withdrawn={"STUDENT ID": "123456"},
            schedules=[{"Per Beg": "1", "Wdraw Date": "10/01/2024"}],
        )
        assert eligibility.decide(record) == EligibilityDecision.EXCLUDE_WITHDRAWN

    def test_reinstated_with_active_entry(self, eligibility, make_record):
        record = make_record(
            123456,
            wd_other={"STUDENT ID": "123456"},
            schedules=[
                {"Per Beg": "1", "Wdraw Date": "10/01/2024"},
                {"Per Beg": "2", "Wdraw Date": ""},
            ],
        )
        assert eligibility.decide(record) == EligibilityDecision.REINSTATED
        assert EligibilityDecision.REINSTATED.is_included


@pytest.mark.unit
class TestApply:
    """Tests for filtering a unified record set"""

    def test_kept_and_report(self, eligibility, make_record):
        records = {
            1000001: make_record(1000001, registrations={"x": "1"}),
            1000002: make_record(1000002, withdrawn={"x": "1"}, registrations={"x": "1"}),
            1000003: make_record(
                1000003,
                withdrawn={"x": "1"},
                wd_other={"x": "1"},
                schedules=[{"Wdraw Date": ""}],
            ),
            1000004: make_record(1000004, contacts={"x": "1"}),
        }

        kept, report = eligibility.apply(records)

        assert list(kept) == [1000001, 1000003]
        assert report.removed_count == 1
        assert report.reinstated_count == 1
        assert report.excluded_other_count == 1
        assert report.counts() == {
            "include": 1,
            "exclude-withdrawn": 1,
            "exclude-other": 1,
            "reinstated": 1,
        }

    def test_student_in_two_withdrawal_sources_counted_once(self, eligibility, make_record):
        records = {
            1000002: make_record(1000002, withdrawn={"x": "1"}, wd_other={"x": "1"}),
        }

        kept, report = eligibility.apply(records)

        assert kept == {}
        assert len(report.decisions) == 1
        assert report.removed_count == 1
