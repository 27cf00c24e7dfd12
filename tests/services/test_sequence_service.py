"""
Tests for SequenceService monotonic allocation.
"""

from lease_kernel.services.sequence_service import SequenceService


class TestSequenceService:

    def test_first_value_is_one(self, session):
        seq = SequenceService(session)
        assert seq.next_value("test_seq") == 1

    def test_strictly_monotonic(self, session):
        seq = SequenceService(session)
        values = [seq.next_value("test_seq") for _ in range(10)]
        assert values == list(range(1, 11))

    def test_sequences_independent(self, session):
        seq = SequenceService(session)
        seq.next_value("a")
        seq.next_value("a")
        assert seq.next_value("b") == 1
        assert seq.current_value("a") == 2

    def test_current_value_unknown(self, session):
        assert SequenceService(session).current_value("missing") is None

    def test_rollback_returns_value(self, session):
        seq = SequenceService(session)
        seq.next_value("test_seq")
        session.commit()

        nested = session.begin_nested()
        seq.next_value("test_seq")
        nested.rollback()

        assert seq.current_value("test_seq") == 1
        assert seq.next_value("test_seq") == 2
