"""
Tests for Alert Engine
Threshold evaluation, once-per-day de-duplication and contact validation
"""

import pytest
from datetime import datetime, date

from actions.alert_engine import (
    AlertEngine,
    bp_status,
    classify,
    latest_reading,
    sugar_status,
)
from actions.snapshots import (
    AlertRecord,
    AlertSettingsSnapshot,
    AlertStatus,
    AlertType,
    SugarContext,
    VitalReadingSnapshot,
    VitalType,
)


NOW = datetime(2024, 6, 10, 21, 0)
TODAY = date(2024, 6, 10)


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def engine():
    return AlertEngine()


@pytest.fixture
def settings():
    return AlertSettingsSnapshot(user_id=1, emergency_contacts=("care@example.com",))


def bp(systolic, diastolic, at=datetime(2024, 6, 10, 9, 0), reading_id=1):
    return VitalReadingSnapshot(
        id=reading_id,
        user_id=1,
        vital_type=VitalType.BP,
        recorded_at=at,
        systolic=systolic,
        diastolic=diastolic
    )


def sugar(level, context=SugarContext.FASTING, at=datetime(2024, 6, 10, 9, 0), reading_id=2):
    return VitalReadingSnapshot(
        id=reading_id,
        user_id=1,
        vital_type=VitalType.SUGAR,
        recorded_at=at,
        sugar_level=level,
        sugar_context=context
    )


def existing(subject, tag=None, day=TODAY, alert_type=AlertType.EMERGENCY):
    return AlertRecord(
        user_id=1,
        alert_type=alert_type,
        subject=subject,
        content="",
        alert_day=day,
        condition_tag=tag,
        status=AlertStatus.SENT
    )


# =============================================================================
# Classification
# =============================================================================

class TestClassification:

    @pytest.mark.unit
    def test_range_is_inclusive(self):
        assert classify(120, 90, 120) == "normal"
        assert classify(90, 90, 120) == "normal"
        assert classify(121, 90, 120) == "high"
        assert classify(89, 90, 120) == "low"
        assert classify(None, 90, 120) is None

    @pytest.mark.unit
    def test_bp_high_wins_over_low(self, settings):
        assert bp_status(bp(150, 50), settings) == "high"
        assert bp_status(bp(100, 50), settings) == "low"
        assert bp_status(bp(115, 75), settings) == "normal"

    @pytest.mark.unit
    def test_after_meal_sugar_uses_fasting_range_by_default(self, settings):
        assert sugar_status(sugar(120, SugarContext.AFTER_MEAL), settings) == "high"

    @pytest.mark.unit
    def test_after_meal_sugar_with_context_thresholds(self, settings):
        reading = sugar(120, SugarContext.AFTER_MEAL)
        assert sugar_status(reading, settings, use_context_thresholds=True) == "normal"

    @pytest.mark.unit
    def test_latest_reading_of_the_day(self):
        readings = [
            bp(150, 95, at=datetime(2024, 6, 10, 9, 0), reading_id=1),
            bp(115, 75, at=datetime(2024, 6, 10, 18, 0), reading_id=2),
            bp(180, 110, at=datetime(2024, 6, 9, 23, 0), reading_id=3),
        ]
        assert latest_reading(readings, VitalType.BP, TODAY).id == 2

    @pytest.mark.unit
    def test_latest_reading_tie_keeps_later_listed(self):
        at = datetime(2024, 6, 10, 9, 0)
        readings = [bp(150, 95, at=at, reading_id=1), bp(115, 75, at=at, reading_id=2)]
        assert latest_reading(readings, VitalType.BP, TODAY).id == 2


# =============================================================================
# Evaluation
# =============================================================================

class TestEvaluate:

    @pytest.mark.unit
    def test_high_bp_raises_emergency_alert(self, engine, settings):
        alerts = engine.evaluate([bp(150, 95)], settings, [], NOW, patient_name="Asha")

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.alert_type == AlertType.EMERGENCY
        assert alert.condition_tag == "bp_out_of_range"
        assert alert.subject == "EMERGENCY: BP Out of Range - Asha"
        assert alert.recipients == ("care@example.com",)
        assert alert.alert_day == TODAY
        assert "150/95 mmHg" in alert.content
        assert "Normal range: 90-120/60-80 mmHg" in alert.content

    @pytest.mark.unit
    def test_latest_normal_reading_clears_condition(self, engine, settings):
        readings = [
            bp(150, 95, at=datetime(2024, 6, 10, 9, 0)),
            bp(115, 75, at=datetime(2024, 6, 10, 18, 0), reading_id=2),
        ]
        assert engine.evaluate(readings, settings, [], NOW) == []

    @pytest.mark.unit
    def test_yesterdays_reading_is_ignored(self, engine, settings):
        assert engine.evaluate([bp(150, 95, at=datetime(2024, 6, 9, 9, 0))], settings, [], NOW) == []

    @pytest.mark.unit
    def test_already_raised_by_key(self, engine, settings):
        raised = [existing("EMERGENCY: BP Out of Range - Asha", tag="bp_out_of_range")]
        assert engine.evaluate([bp(150, 95)], settings, raised, NOW) == []

    @pytest.mark.unit
    def test_already_raised_by_subject_marker(self, engine, settings):
        raised = [existing("EMERGENCY: BP Out of Range - Asha")]
        assert engine.evaluate([bp(150, 95)], settings, raised, NOW) == []

    @pytest.mark.unit
    def test_yesterdays_alert_does_not_block(self, engine, settings):
        raised = [existing("EMERGENCY: BP Out of Range - Asha", tag="bp_out_of_range", day=date(2024, 6, 9))]
        assert len(engine.evaluate([bp(150, 95)], settings, raised, NOW)) == 1

    @pytest.mark.unit
    def test_bp_alert_does_not_block_sugar_alert(self, engine, settings):
        raised = [existing("EMERGENCY: BP Out of Range - Asha", tag="bp_out_of_range")]
        alerts = engine.evaluate([bp(150, 95), sugar(250)], settings, raised, NOW)

        assert [a.condition_tag for a in alerts] == ["sugar_out_of_range"]

    @pytest.mark.unit
    def test_no_contacts_raises_nothing(self, engine):
        settings = AlertSettingsSnapshot(user_id=1)
        assert engine.evaluate([bp(150, 95)], settings, [], NOW) == []

    @pytest.mark.unit
    def test_disabled_emergency_alerts(self, engine):
        settings = AlertSettingsSnapshot(
            user_id=1,
            emergency_contacts=("care@example.com",),
            enable_emergency_alerts=False
        )
        assert engine.evaluate([bp(150, 95)], settings, [], NOW) == []

    @pytest.mark.unit
    def test_after_meal_sugar_flagged_against_fasting_range(self, engine, settings):
        alerts = engine.evaluate([sugar(120, SugarContext.AFTER_MEAL)], settings, [], NOW)
        assert len(alerts) == 1
        assert "Normal range: 70-100 mg/dL" in alerts[0].content

    @pytest.mark.unit
    def test_context_thresholds_engine(self, settings):
        engine = AlertEngine(use_context_sugar_thresholds=True)
        assert engine.evaluate([sugar(120, SugarContext.AFTER_MEAL)], settings, [], NOW) == []

    @pytest.mark.unit
    def test_low_sugar_recommended_actions(self, engine, settings):
        alert = engine.evaluate([sugar(55)], settings, [], NOW)[0]
        assert "LOW" in alert.content
        assert "fast-acting sugar" in alert.content
        assert alert.metadata["status"] == "low"


# =============================================================================
# Test alerts, stats and contacts
# =============================================================================

class TestTestAlert:

    @pytest.mark.unit
    def test_compose_test_alert(self, engine, settings):
        alert = engine.compose_test_alert(settings, NOW, patient_name="Asha")

        assert alert.subject == "System Check: Test Alert - Asha"
        assert alert.condition_tag is None
        assert alert.key is None

    @pytest.mark.unit
    def test_test_alert_needs_contacts(self, engine):
        with pytest.raises(ValueError):
            engine.compose_test_alert(AlertSettingsSnapshot(user_id=1), NOW)


class TestStats:

    @pytest.mark.unit
    def test_stats(self, engine):
        alerts = [
            existing("a", tag="bp_out_of_range"),
            AlertRecord(
                user_id=1,
                alert_type=AlertType.REPORT,
                subject="b",
                content="",
                alert_day=TODAY,
                status=AlertStatus.FAILED
            ),
        ]
        stats = engine.stats(alerts)

        assert stats["total"] == 2
        assert stats["by_status"]["sent"] == 1
        assert stats["by_status"]["failed"] == 1
        assert stats["by_type"]["report"] == 1
        assert stats["last_sent_at"] is None


class TestValidateContact:

    @pytest.mark.unit
    def test_trims_email(self, engine):
        assert engine.validate_contact("  son@example.com ", []) == "son@example.com"

    @pytest.mark.unit
    def test_duplicate_is_case_insensitive(self, engine):
        with pytest.raises(ValueError, match="already exists"):
            engine.validate_contact("Care@Example.com", ["care@example.com"])

    @pytest.mark.unit
    @pytest.mark.parametrize("email", ["", "   ", "not-an-email"])
    def test_invalid(self, engine, email):
        with pytest.raises(ValueError):
            engine.validate_contact(email, [])
