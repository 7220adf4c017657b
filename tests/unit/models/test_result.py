"""
Module: test_result.py
Description: Unit tests for strategy and batch results.
"""

from fanout.errors import DownstreamError, PartialBatchFailure
from fanout.models.result import BatchItemResult, BatchResponse, StrategyResult


class TestStrategyResult:

    def test_ok(self):
        result = StrategyResult.ok()
        assert result.succeeded is True
        assert result.error is None

    def test_failure(self):
        error = DownstreamError("timeout")
        result = StrategyResult.failure(error)
        assert result.succeeded is False
        assert result.error is error


class TestBatchResponse:
    """Test cases for BatchResponse."""

    def test_from_results_keeps_failed_ids_in_order(self):
        """Test only failed records are named, in delivery order."""
        response = BatchResponse.from_results([
            BatchItemResult(record_id="a", succeeded=True),
            BatchItemResult(record_id="c", succeeded=False),
            BatchItemResult(record_id="b", succeeded=False),
        ])

        assert response.failed_record_ids == ["c", "b"]
        assert response.total == 3
        assert response.to_lambda_response() == {
            "batchItemFailures": [{"itemIdentifier": "c"}, {"itemIdentifier": "b"}]
        }

    def test_full_success(self):
        """Test an empty failure list signals full-batch success."""
        response = BatchResponse.from_results([BatchItemResult(record_id="a", succeeded=True)])

        assert response.succeeded
        assert response.as_error() is None
        assert response.to_lambda_response() == {"batchItemFailures": []}

    def test_as_error(self):
        response = BatchResponse(failed_record_ids=["b"], total=3)

        error = response.as_error()

        assert isinstance(error, PartialBatchFailure)
        assert error.failed_record_ids == ["b"]
        assert error.message == "1 of 3 records failed"

    def test_all_failed(self):
        """Test records without messageId are reported with an empty id."""
        response = BatchResponse.all_failed([{"messageId": "a"}, {"body": "{}"}, "junk"])

        assert response.failed_record_ids == ["a", "", ""]
        assert response.total == 3
