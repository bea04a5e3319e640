"""
Feature toggles loaded once from the feature_flags table.
"""
from kitchen_assistant.feature_flags import FeatureFlags, load_feature_flags

from fakes import FakeAPIError


def test_defaults():
    flags = FeatureFlags()

    assert (flags.dataset, flags.suggestions, flags.rag, flags.weekly_planner) == (False, True, True, True)


def test_rows_override_defaults(fake_client):
    fake_client.add_row("feature_flags", {"name": "dataset", "enabled": True})
    fake_client.add_row("feature_flags", {"name": "weeklyPlanner", "enabled": False})
    fake_client.add_row("feature_flags", {"name": "somethingElse", "enabled": True})

    flags = load_feature_flags(fake_client)

    assert flags.dataset is True
    assert flags.weekly_planner is False
    assert flags.rag is True
    assert flags.is_enabled("weeklyPlanner") is False
    assert flags.is_enabled("dataset") is True
    assert flags.is_enabled("somethingElse") is False


def test_storage_failure_uses_defaults(fake_client):
    fake_client.fail_tables["feature_flags"] = FakeAPIError("relation does not exist")

    assert load_feature_flags(fake_client) == FeatureFlags()
