import dataclasses
import uuid

import pytest

from swipesvc.domain import Match, Pagination, Swipe


A = uuid.UUID("11111111-1111-1111-1111-111111111111")
B = uuid.UUID("22222222-2222-2222-2222-222222222222")


def test_match_log_value():
    assert Match(A, B).log_value() == {
        "init": "11111111-1111-1111-1111-111111111111",
        "target": "22222222-2222-2222-2222-222222222222",
    }


def test_swipe_log_value_with_missing_responses():
    value = Swipe(A, B).log_value()
    assert value["initResp"] is None
    assert value["targetResp"] is None
    assert value["init"] == str(A)
    assert value["target"] == str(B)


def test_swipe_log_value_with_responses():
    value = Swipe(A, B, init_resp=True, target_resp=False).log_value()
    assert value["initResp"] is True
    assert value["targetResp"] is False


def test_pagination_log_value():
    assert Pagination(offset=3, limit=7).log_value() == {"offset": 3, "limit": 7}


def test_swipe_is_immutable():
    swipe = Swipe(A, B, init_resp=True)
    with pytest.raises(dataclasses.FrozenInstanceError):
        swipe.init_resp = False
    assert swipe.init_resp is True
    assert swipe.log_value()["initResp"] is True


def test_equality_by_value():
    assert Match(A, B) == Match(A, B)
    assert Match(A, B) != Match(B, A)