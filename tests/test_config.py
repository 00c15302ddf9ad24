"""
Settings tests: covers validation of values read from the environment.
"""
import pytest
from pydantic import ValidationError

from taskboard.config import Settings


@pytest.mark.parametrize("scope", ["all", "involved"])
def test_task_browse_scope_accepts_known_values(monkeypatch, scope):
    monkeypatch.setenv("TASK_BROWSE_SCOPE", scope)
    assert Settings().TASK_BROWSE_SCOPE == scope


@pytest.mark.parametrize("scope", ["involve", "ALL", ""])
def test_task_browse_scope_rejects_unknown_values(monkeypatch, scope):
    monkeypatch.setenv("TASK_BROWSE_SCOPE", scope)
    with pytest.raises(ValidationError):
        Settings()
