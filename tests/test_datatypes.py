"""Tests for the run state and result containers."""

from decliner_advisor.models.datatypes import (
    AdvisoryRecord, Category, PipelineResult, RunState, TRACE_CAPACITY,
)


class TestRunState:

    def test_push_is_newest_first_and_bounded(self) -> None:
        state = RunState()
        for i in range(TRACE_CAPACITY + 5):
            state.push(f"m{i}")
        trace = state.snapshot_trace()
        assert len(trace) == TRACE_CAPACITY
        assert trace[0] == f"m{TRACE_CAPACITY + 4}"
        assert trace[-1] == "m5"

    def test_defaults(self) -> None:
        state = RunState()
        assert state.loading is False
        assert state.error is None
        assert state.stage.value == "Idle"


class TestPipelineResult:

    def test_empty_frame_has_columns(self) -> None:
        frame = PipelineResult(as_of_date=None, records=(), trace=[]).to_frame()
        assert frame.empty
        assert "category" in frame.columns

    def test_to_dict_serialises_enums(self) -> None:
        record = AdvisoryRecord(
            symbol="ABC", price=2.0, change_pct=-11.0, change_amount=-0.3, volume=5,
            avg_volume=None, headlines=("a",), sentiment_score=-0.1,
            category=Category.WAIT, rationale="r", signals=("drop>=10",),
        )
        result = PipelineResult(as_of_date="2024-05-17", records=(record,), trace=["x"], requested=1)
        data = result.to_dict()
        assert data["records"][0]["category"] == "Wait"
        assert data["records"][0]["headlines"] == ["a"]
        assert data["records"][0]["avg_volume"] is None
        assert result.ok

    def test_category_values(self) -> None:
        assert [c.value for c in Category] == ["Avoid", "Wait", "SpeculativeBuy"]
