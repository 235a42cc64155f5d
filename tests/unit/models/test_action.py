"""Unit tests for action models."""

import pytest
from shardctl.models import Action, ActionType, PackageAvailability, PackageType
from shardctl.models.action import failed, succeeded


class TestAction:
    """Tests for Action."""

    def test_label_with_kind(self) -> None:
        """Labels combine action type and kind."""
        assert Action(ActionType.INSTALL, "firefox", PackageType.CASK).label == "install cask"

    def test_label_without_kind(self) -> None:
        """Tap and cleanup labels are the action type."""
        assert Action(ActionType.TAP, "a/b").label == "tap"

    def test_empty_package_rejected(self) -> None:
        """Actions need a target."""
        with pytest.raises(ValueError, match="cannot be empty"):
            Action(ActionType.INSTALL, "")


class TestActionResult:
    """Tests for result helpers."""

    def test_succeeded(self) -> None:
        """succeeded() builds a successful result."""
        result = succeeded(Action(ActionType.INSTALL, "git"))
        assert result.success is True
        assert result.failed is False
        assert result.message == "Operation completed"

    def test_failed(self) -> None:
        """failed() records the error."""
        result = failed(Action(ActionType.INSTALL, "git"), "boom")
        assert result.failed is True
        assert result.error == "boom"


class TestPackageAvailability:
    """Tests for PackageAvailability."""

    @pytest.mark.parametrize(
        ("as_formula", "as_cask", "exists"),
        [(True, False, True), (False, True, True), (True, True, True), (False, False, False)],
    )
    def test_exists(self, as_formula: bool, as_cask: bool, exists: bool) -> None:
        """A package exists if it is available as either kind."""
        assert PackageAvailability("x", as_formula, as_cask).exists is exists
