"""Tests for the remote write and remote read endpoints."""

import math

import snappy

from crateadapter.exceptions import MalformedResultError, StoreError
from crateadapter.prometheus import prompb
from crateadapter.translation import ResultTable
from crateadapter.translation.values import float_to_raw

HEADERS = {
    "Content-Type": "application/x-protobuf",
    "Content-Encoding": "snappy",
}


def write_body():
    request = prompb.WriteRequest(
        timeseries=[
            prompb.TimeSeries(
                labels=[
                    prompb.Label(name="__name__", value="up"),
                    prompb.Label(name="job", value="api"),
                ],
                samples=[
                    prompb.Sample(value=1.0, timestamp=1000),
                    prompb.Sample(value=math.inf, timestamp=2000),
                ],
            )
        ]
    )
    return snappy.compress(request.SerializeToString())


def read_body(queries=1):
    query = prompb.Query(
        start_timestamp_ms=1000,
        end_timestamp_ms=2000,
        matchers=[prompb.LabelMatcher(type=0, name="__name__", value="up")],
    )
    request = prompb.ReadRequest(queries=[query] * queries)
    return snappy.compress(request.SerializeToString())


def metric(observer, name):
    return observer.registry.get_sample_value(name, {})


class TestRemoteWrite:
    """Test POST /write."""

    def test_write_success(self, client, fake_transport, observer):
        """Test a write request becomes one bulk insert."""
        response = client.post("/write", content=write_body(), headers=HEADERS)

        assert response.status_code == 200
        assert response.content == b""
        assert len(fake_transport.bulk_statements) == 1
        statement = fake_transport.bulk_statements[0]
        assert statement.text.startswith('INSERT INTO samples ("l__name__", "ljob", ')
        assert statement.bulk_args == [
            ["up", "api", "1.000000", float_to_raw(1.0), 1000],
            ["up", "api", "+Inf", float_to_raw(math.inf), 2000],
        ]
        assert metric(observer, "crate_adapter_write_latency_seconds_count") == 1.0
        assert metric(observer, "crate_adapter_write_failed_total") == 0.0

    def test_write_without_content_headers(self, client, fake_transport):
        """Test missing content headers are tolerated."""
        response = client.post("/write", content=write_body())

        assert response.status_code == 200
        assert len(fake_transport.bulk_statements) == 1

    def test_write_undecodable_body(self, client, fake_transport, observer):
        """Test a body that is not snappy is a client error."""
        response = client.post("/write", content=b"garbage", headers=HEADERS)

        assert response.status_code == 400
        assert "WriteRequest" in response.json()["detail"]
        assert fake_transport.bulk_statements == []
        assert metric(observer, "crate_adapter_write_failed_total") == 1.0

    def test_write_empty_body(self, client):
        """Test an empty body is a client error."""
        response = client.post("/write", content=b"", headers=HEADERS)
        assert response.status_code == 400

    def test_write_too_large(self, client):
        """Test a body above the configured limit is refused."""
        response = client.post(
            "/write", content=b"x" * (1024 * 1024 + 1), headers=HEADERS
        )
        assert response.status_code == 413

    def test_write_wrong_content_type(self, client):
        """Test a conflicting content type is refused."""
        response = client.post(
            "/write",
            content=write_body(),
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_write_store_failure(self, client, fake_transport, observer):
        """Test a store failure is a server error."""
        fake_transport.error = StoreError("insert", "RelationUnknown", status_code=404)

        response = client.post("/write", content=write_body(), headers=HEADERS)

        assert response.status_code == 500
        assert "RelationUnknown" in response.json()["detail"]
        assert "request_id" in response.json()
        assert metric(observer, "crate_adapter_write_crate_failed_total") == 1.0
        assert metric(observer, "crate_adapter_write_failed_total") == 1.0


class TestRemoteRead:
    """Test POST /read."""

    def test_read_success(self, client, fake_transport):
        """Test a read request is answered from the store."""
        fake_transport.result = ResultTable(
            ["l__name__", "ljob", "value", "valueRaw", "timestamp"],
            [
                ["up", "api", "1.000000", float_to_raw(1.0), 1000],
                ["up", None, "NaN", float_to_raw(math.nan), 1500],
                ["up", "api", "0.000000", float_to_raw(0.0), 2000],
            ],
        )

        response = client.post("/read", content=read_body(), headers=HEADERS)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/x-protobuf"
        assert response.headers["content-encoding"] == "snappy"
        assert fake_transport.statements[0].text == (
            "SELECT * FROM samples WHERE (\"l__name__\" = 'up') "
            "AND (timestamp <= 2000) AND (timestamp >= 1000) ORDER BY timestamp"
        )

        read_response = prompb.ReadResponse()
        read_response.ParseFromString(snappy.decompress(response.content))
        assert len(read_response.results) == 1
        series = read_response.results[0].timeseries
        assert len(series) == 2
        assert [(l.name, l.value) for l in series[0].labels] == [("__name__", "up")]
        assert math.isnan(series[0].samples[0].value)
        assert [(l.name, l.value) for l in series[1].labels] == [
            ("__name__", "up"),
            ("job", "api"),
        ]
        assert [s.timestamp for s in series[1].samples] == [1000, 2000]

    def test_read_multiple_queries(self, client, fake_transport, observer):
        """Test more than one query is a client error."""
        response = client.post("/read", content=read_body(queries=2), headers=HEADERS)

        assert response.status_code == 400
        assert fake_transport.statements == []
        assert metric(observer, "crate_adapter_read_failed_total") == 1.0

    def test_read_invalid_regex(self, client, fake_transport):
        """Test a matcher regex that does not compile is a client error."""
        request = prompb.ReadRequest(
            queries=[
                prompb.Query(
                    matchers=[prompb.LabelMatcher(type=2, name="job", value="(")]
                )
            ]
        )

        response = client.post(
            "/read",
            content=snappy.compress(request.SerializeToString()),
            headers=HEADERS,
        )

        assert response.status_code == 400
        assert fake_transport.statements == []

    def test_read_store_failure(self, client, fake_transport, observer):
        """Test a store failure is a server error."""
        fake_transport.error = StoreError("select", "timeout")

        response = client.post("/read", content=read_body(), headers=HEADERS)

        assert response.status_code == 500
        assert metric(observer, "crate_adapter_read_crate_failed_total") == 1.0

    def test_read_malformed_result(self, client, fake_transport):
        """Test an unusable result table is a server error."""
        fake_transport.error = MalformedResultError("missing columns")

        response = client.post("/read", content=read_body(), headers=HEADERS)

        assert response.status_code == 500


class TestAppEndpoints:
    """Test the landing page, metrics and request IDs."""

    def test_landing_page(self, client):
        """Test the landing page links to the metrics."""
        response = client.get("/")

        assert response.status_code == 200
        assert 'href="/metrics"' in response.text

    def test_metrics(self, client):
        """Test metrics are exposed in the text format."""
        client.post("/write", content=write_body(), headers=HEADERS)

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "crate_adapter_write_timeseries_samples_count 1.0" in response.text

    def test_request_id_generated(self, client):
        """Test responses carry a request ID."""
        response = client.get("/health")
        assert response.headers["X-Request-ID"]

    def test_request_id_propagated(self, client):
        """Test an incoming request ID is echoed back."""
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"
