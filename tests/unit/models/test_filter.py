"""
Unit tests for models.filter module.

Tests:
- by_id() and by_address() constructors
- Normalization (hex lowercasing, tuple freezing)
- Validation (empty filter, bad hex, bad kind, bad limit)
- to_dict() NIP-01 shape
"""

import pytest

from nostrgate.models.filter import RecordFilter


ID = "a" * 64
PUBKEY = "b" * 64


class TestConstructors:
    """Class method constructors."""

    def test_by_id(self):
        f = RecordFilter.by_id(ID.upper())
        assert f.ids == (ID,)
        assert f.authors == ()
        assert f.limit is None

    def test_by_address(self):
        f = RecordFilter.by_address(PUBKEY, 30051, "my-site")
        assert f.authors == (PUBKEY,)
        assert f.kinds == (30051,)
        assert f.d_tags == ("my-site",)
        assert f.limit == 1

    def test_empty_identifier_allowed(self):
        assert RecordFilter.by_address(PUBKEY, 30051, "").d_tags == ("",)

    def test_lists_frozen(self):
        f = RecordFilter(ids=[ID], kinds=[1, 2])
        assert f.ids == (ID,)
        assert f.kinds == (1, 2)


class TestValidation:
    """Invalid filters are rejected."""

    def test_empty(self):
        with pytest.raises(ValueError, match="at least one"):
            RecordFilter()

    def test_bad_id(self):
        with pytest.raises(ValueError, match="ids"):
            RecordFilter(ids=("xyz",))

    def test_bad_author(self):
        with pytest.raises(ValueError, match="authors"):
            RecordFilter(authors=("a" * 58,))

    def test_bad_kind(self):
        with pytest.raises(ValueError, match="kinds"):
            RecordFilter(kinds=(70000,))

    @pytest.mark.parametrize("limit", [0, -5, True])
    def test_bad_limit(self, limit):
        with pytest.raises(ValueError, match="limit"):
            RecordFilter(ids=(ID,), limit=limit)

    def test_single_string_rejected(self):
        with pytest.raises(TypeError):
            RecordFilter(ids=ID)


class TestToDict:
    """NIP-01 JSON shape."""

    def test_id_filter(self):
        assert RecordFilter.by_id(ID).to_dict() == {"ids": [ID]}

    def test_address_filter(self):
        assert RecordFilter.by_address(PUBKEY, 30051, "site").to_dict() == {
            "authors": [PUBKEY],
            "kinds": [30051],
            "#d": ["site"],
            "limit": 1,
        }
