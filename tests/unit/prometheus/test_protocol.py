"""Tests for the Prometheus remote storage protocol handler."""

import math

import pytest
import snappy

from crateadapter.exceptions import MultipleQueriesError, ProtocolDecodeError
from crateadapter.prometheus import PrometheusRemoteStorage, prompb
from crateadapter.translation import MatchType, Sample, TimeSeries


@pytest.fixture
def write_request_body():
    """Snappy-compressed WriteRequest with two series."""
    request = prompb.WriteRequest(
        timeseries=[
            prompb.TimeSeries(
                labels=[
                    prompb.Label(name="__name__", value="up"),
                    prompb.Label(name="job", value="api"),
                ],
                samples=[
                    prompb.Sample(value=1.0, timestamp=1000),
                    prompb.Sample(value=0.0, timestamp=2000),
                ],
            ),
            prompb.TimeSeries(
                labels=[prompb.Label(name="__name__", value="temp")],
                samples=[prompb.Sample(value=math.nan, timestamp=1500)],
            ),
        ]
    )
    return snappy.compress(request.SerializeToString())


def read_request_body(*queries):
    request = prompb.ReadRequest(queries=list(queries))
    return snappy.compress(request.SerializeToString())


class TestWriteRequests:
    """Test decoding remote write requests."""

    def test_decode_write_request(self, write_request_body):
        """Test a valid body decodes to its series."""
        handler = PrometheusRemoteStorage()

        write_request = handler.decode_write_request(write_request_body)
        series = handler.write_request_to_series(write_request)

        assert len(series) == 2
        assert series[0].labels == {"__name__": "up", "job": "api"}
        assert series[0].samples == [Sample(1000, 1.0), Sample(2000, 0.0)]
        assert series[1].labels == {"__name__": "temp"}
        assert math.isnan(series[1].samples[0].value)

    def test_invalid_snappy(self):
        """Test data that is not Snappy compressed is rejected."""
        with pytest.raises(ProtocolDecodeError) as exc_info:
            PrometheusRemoteStorage.decode_write_request(b"not snappy data")
        assert exc_info.value.context["message_type"] == "WriteRequest"

    def test_invalid_protobuf(self):
        """Test Snappy data that is not a WriteRequest is rejected."""
        with pytest.raises(ProtocolDecodeError):
            PrometheusRemoteStorage.decode_write_request(
                snappy.compress(b"\xff\xff\xff\xff")
            )

    def test_statistics(self, write_request_body):
        """Test write request statistics."""
        write_request = PrometheusRemoteStorage.decode_write_request(write_request_body)

        stats = PrometheusRemoteStorage.get_statistics(write_request)

        assert stats == {
            "total_time_series": 2,
            "total_samples": 3,
            "unique_metrics": 2,
            "unique_labels": 2,
            "min_timestamp": 1000,
            "max_timestamp": 2000,
        }


class TestReadRequests:
    """Test decoding remote read requests."""

    def test_single_query(self):
        """Test the query, its matchers and time range are extracted."""
        body = read_request_body(
            prompb.Query(
                start_timestamp_ms=1000,
                end_timestamp_ms=2000,
                matchers=[
                    prompb.LabelMatcher(type=0, name="__name__", value="up"),
                    prompb.LabelMatcher(type=3, name="job", value="a.*"),
                ],
            )
        )
        handler = PrometheusRemoteStorage()

        query = handler.read_request_to_query(handler.decode_read_request(body))

        assert query.start_timestamp_ms == 1000
        assert query.end_timestamp_ms == 2000
        assert [(m.name, m.value, m.match_type) for m in query.matchers] == [
            ("__name__", "up", MatchType.EQUAL),
            ("job", "a.*", MatchType.REGEX_NO_MATCH),
        ]

    def test_multiple_queries_rejected(self):
        """Test only one query per request is accepted."""
        body = read_request_body(prompb.Query(), prompb.Query())
        handler = PrometheusRemoteStorage()

        with pytest.raises(MultipleQueriesError) as exc_info:
            handler.read_request_to_query(handler.decode_read_request(body))
        assert exc_info.value.context["count"] == 2

    def test_no_queries_rejected(self):
        """Test a request without queries is rejected."""
        handler = PrometheusRemoteStorage()
        with pytest.raises(MultipleQueriesError):
            handler.read_request_to_query(handler.decode_read_request(read_request_body()))

    def test_unknown_matcher_type(self):
        """Test matcher types outside the protocol enum are rejected."""
        body = read_request_body(
            prompb.Query(matchers=[prompb.LabelMatcher(type=9, name="a", value="b")])
        )
        handler = PrometheusRemoteStorage()

        with pytest.raises(ProtocolDecodeError):
            handler.read_request_to_query(handler.decode_read_request(body))


class TestReadResponses:
    """Test encoding remote read responses."""

    def test_encode_read_response(self):
        """Test series are wrapped in a single query result."""
        series = [
            TimeSeries({"__name__": "up", "job": "api"}, [Sample(1000, 1.0)]),
            TimeSeries({}, [Sample(5, -math.inf), Sample(6, math.nan)]),
        ]

        payload = PrometheusRemoteStorage.encode_read_response(series)

        response = prompb.ReadResponse()
        response.ParseFromString(snappy.decompress(payload))
        assert len(response.results) == 1
        result = response.results[0]
        assert len(result.timeseries) == 2
        assert [(l.name, l.value) for l in result.timeseries[0].labels] == [
            ("__name__", "up"),
            ("job", "api"),
        ]
        assert result.timeseries[0].samples[0].timestamp == 1000
        assert result.timeseries[0].samples[0].value == 1.0
        assert list(result.timeseries[1].labels) == []
        assert result.timeseries[1].samples[0].value == -math.inf
        assert math.isnan(result.timeseries[1].samples[1].value)

    def test_empty_response(self):
        """Test no series still gives one empty query result."""
        payload = PrometheusRemoteStorage.encode_read_response([])

        response = prompb.ReadResponse()
        response.ParseFromString(snappy.decompress(payload))
        assert len(response.results) == 1
        assert len(response.results[0].timeseries) == 0
