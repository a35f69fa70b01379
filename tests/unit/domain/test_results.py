import pytest

from rolegate.domain.results import BusinessRule, Failure, FailureError, FailureKind, Result


def test_success():
    result = Result.success([1, 2])
    assert result.ok is True
    assert result.kind is None
    assert result.code is None
    assert result.unwrap() == [1, 2]


def test_failure_exposes_kind_and_code():
    result = Result.fail(Failure.rule(BusinessRule.MAX_OWNERS_EXCEEDED, "too many"))
    assert result.ok is False
    assert result.kind == FailureKind.BUSINESS_RULE_VIOLATION
    assert result.code == "MaxOwnersExceeded"


def test_unwrap_raises():
    result = Result.fail(Failure.not_found("Role 'Ghost' not found"))
    with pytest.raises(FailureError, match="NotFound: Role 'Ghost' not found") as exc_info:
        result.unwrap()
    assert exc_info.value.failure.kind == FailureKind.NOT_FOUND


def test_internal_failure_hides_details():
    failure = Failure.internal()
    assert failure.kind == FailureKind.INTERNAL
    assert failure.message == "An internal error occurred"


def test_challenge_failure():
    failure = Failure.challenge_expired_or_consumed()
    assert failure.code == "ChallengeExpiredOrConsumed"
