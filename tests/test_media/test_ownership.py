# tests/test_media/test_ownership.py

import pytest

from scoop_media.media.ownership import OwnershipMode, authorize


def test_owner_is_allowed():
    assert authorize("u123", "uploads/u123/171_abcd.mp4") is True


def test_other_user_is_denied():
    assert authorize("u123", "uploads/u999/171_abcd.mp4") is False


@pytest.mark.parametrize("caller, key", [("", "uploads/u1/a.jpg"), ("u1", ""), ("", "")])
def test_empty_inputs_denied(caller, key):
    assert authorize(caller, key) is False
    assert authorize(caller, key, mode=OwnershipMode.SEGMENT) is False


def test_substring_mode_accepts_coincidental_match():
    # Known weakness of the default policy: containment, not segment equality.
    assert authorize("victim123", "uploads/victim123extra/x.jpg") is True
    assert authorize("u1", "uploads/u12/x.jpg") is True


def test_segment_mode_requires_exact_owner():
    assert authorize("victim123", "uploads/victim123extra/x.jpg", mode="segment") is False
    assert authorize("victim123", "uploads/victim123/x.jpg", mode=OwnershipMode.SEGMENT) is True
    assert authorize("u1", "uploads/u2/u1.jpg", mode="segment") is False


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        authorize("u1", "uploads/u1/x.jpg", mode="fuzzy")
