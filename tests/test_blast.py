"""Unit tests for the Blast record and its wire form."""

import pytest

from conch.blast import Blast, blasts_from_dicts, create_blast
from conch.config import MAX_BLAST_LENGTH


class TestWireForm:
    def test_dict_round_trip(self):
        blast = Blast(id=3, user="hippo", content="Mud, glorious mud!", posted_at=12.5)
        assert Blast.from_dict(blast.to_dict()) == blast

    def test_posted_at_is_optional(self):
        blast = Blast.from_dict({"id": 1, "user": "giraffe", "content": "leaves"})
        assert blast.posted_at == 0.0

    def test_missing_field(self):
        with pytest.raises(ValueError, match="missing"):
            Blast.from_dict({"id": 1, "user": "giraffe"})

    def test_non_integer_id(self):
        with pytest.raises(ValueError):
            Blast.from_dict({"id": "1", "user": "giraffe", "content": "leaves"})

    def test_not_an_object(self):
        with pytest.raises(ValueError):
            Blast.from_dict(["nope"])

    def test_null_posted_at(self):
        with pytest.raises(ValueError, match="posted_at"):
            Blast.from_dict({"id": 1, "user": "giraffe", "content": "leaves", "posted_at": None})

    def test_batch_must_be_a_list(self):
        with pytest.raises(ValueError):
            blasts_from_dicts(5)

    def test_batch_keeps_order(self):
        batch = blasts_from_dicts([
            {"id": 2, "user": "elephant", "content": "splash"},
            {"id": 1, "user": "giraffe", "content": "leaves"},
        ])
        assert [b.id for b in batch] == [2, 1]

    def test_empty_batch(self):
        assert blasts_from_dicts(None) == []
        assert blasts_from_dicts([]) == []


class TestBlast:
    def test_frozen(self):
        blast = Blast(id=1, user="giraffe", content="leaves")
        with pytest.raises(AttributeError):
            blast.content = "bark"

    def test_one_line(self):
        assert Blast(id=1, user="a", content="two\nlines  here").one_line == "two lines here"


class TestCreateBlast:
    def test_strips_and_stamps(self):
        blast = create_blast(7, " lemur ", " hi ", posted_at=5.0)
        assert (blast.id, blast.user, blast.content, blast.posted_at) == (7, "lemur", "hi", 5.0)

    def test_too_long(self):
        with pytest.raises(ValueError, match="too long"):
            create_blast(1, "lemur", "x" * (MAX_BLAST_LENGTH + 1))

    def test_empty_user(self):
        with pytest.raises(ValueError):
            create_blast(1, "", "hi")
