"""Command Input Validation: every malformed input raises InvalidInputError."""

import pytest

from forum_moderation.core.domain_types import (
    SanctionKind, SanctionSeverity, SanctionStatus, SortField, SortOrder,
)
from forum_moderation.core.errors import InvalidInputError
from forum_moderation.core.sanction_input import (
    parse_duration, parse_kind, parse_severity, parse_sort, parse_status, require_reason,
)


def test_reason_is_stripped():
    assert require_reason("  spam  ") == "spam"


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_empty_reason_rejected(reason):
    with pytest.raises(InvalidInputError) as exc:
        require_reason(reason, "revoke_reason")
    assert exc.value.field == "revoke_reason"


def test_overlong_reason_rejected():
    with pytest.raises(InvalidInputError):
        require_reason("x" * 2001)


def test_parse_kind():
    assert parse_kind("silence") is SanctionKind.SILENCE
    with pytest.raises(InvalidInputError) as exc:
        parse_kind("shadow_ban")
    assert exc.value.field == "sanction_type"


def test_parse_severity():
    assert parse_severity(None) is None
    assert parse_severity("high") is SanctionSeverity.HIGH
    with pytest.raises(InvalidInputError):
        parse_severity("extreme")


@pytest.mark.parametrize("value", [0, -4, True, 1.5, "12"])
def test_bad_durations_rejected(value):
    with pytest.raises(InvalidInputError):
        parse_duration(value)


def test_valid_duration():
    assert parse_duration(None) is None
    assert parse_duration(24) == 24


def test_status_and_sort_defaults():
    assert parse_status(None) is SanctionStatus.ALL
    assert parse_sort(None, None) == (SortField.CREATED_AT, SortOrder.DESC)
    assert parse_sort("severity", "asc") == (SortField.SEVERITY, SortOrder.ASC)
    with pytest.raises(InvalidInputError):
        parse_sort("reason", None)
    with pytest.raises(InvalidInputError):
        parse_status("pending")
