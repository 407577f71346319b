import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from pricing.ftypes import Maybe, Either


# ТЕСТЫ Maybe
def test_maybe_some_and_none_behavior():
    just = Maybe.some(42)
    nothing = Maybe.nothing()

    assert just.is_some()
    assert nothing.is_none()
    assert just.get_or_else(0) == 42
    assert nothing.get_or_else(0) == 0
    assert repr(nothing) == "Nothing"


def test_maybe_first_and_to_either():
    found = Maybe.first([1, 5, 8], lambda x: x > 3)
    missing = Maybe.first([1, 2], lambda x: x > 3)

    assert found.get_or_else(None) == 5
    assert found.to_either("err").is_right
    assert missing.to_either("err").value == "err"


# ТЕСТЫ Either
def test_either_check_chain_stops_at_first_left():
    result = (
        Either.right(10)
        .bind(lambda x: Either.check(x, x > 0, "negative"))
        .bind(lambda x: Either.check(x, x < 5, "too big"))
        .bind(lambda x: Either.check(x, x % 2 == 0, "odd"))
    )
    assert result.is_left
    assert result.value == "too big"


def test_either_map_and_fold():
    ok = Either.right(5).map(lambda x: x * 2)
    err = Either.left("boom").map(lambda x: x * 2)

    assert ok.fold(lambda e: -1, lambda v: v) == 10
    assert err.fold(lambda e: e.upper(), lambda v: v) == "BOOM"
    assert err.get_or_else(0) == 0
