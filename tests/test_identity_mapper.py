"""
Unit tests for the shared-step identity mapper.
"""

import pytest

from errors import DuplicateMappingError
from identity_mapper import IdentityMapper


class TestIdentityMapper:
    def test_put_then_get(self):
        mapper = IdentityMapper()
        mapper.put(100, 5001)

        assert mapper.get(100) == 5001
        assert 100 in mapper
        assert len(mapper) == 1

    def test_get_missing_returns_none(self):
        assert IdentityMapper().get(42) is None

    def test_duplicate_put_is_rejected_and_keeps_first_value(self):
        mapper = IdentityMapper()
        mapper.put(100, 5001)

        with pytest.raises(DuplicateMappingError) as excinfo:
            mapper.put(100, 5002)

        assert excinfo.value.source_id == 100
        assert mapper.get(100) == 5001

    def test_as_dict_is_a_snapshot(self):
        mapper = IdentityMapper()
        mapper.put(1, 10)
        snapshot = mapper.as_dict()
        mapper.put(2, 20)

        assert snapshot == {1: 10}
        assert mapper.as_dict() == {1: 10, 2: 20}
