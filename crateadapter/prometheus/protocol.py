"""Prometheus remote read/write protocol handler.

This module decodes Snappy-compressed Protobuf remote write and remote read
requests, converts them into the adapter's translation types, and encodes
remote read responses.
"""

import logging
from typing import Any, Dict, List, Sequence

import snappy
from google.protobuf.message import DecodeError

from crateadapter.exceptions import MultipleQueriesError, ProtocolDecodeError
from crateadapter.prometheus import prompb
from crateadapter.translation.models import (
    LabelMatcher,
    MatchType,
    Query,
    Sample,
    TimeSeries,
)

logger = logging.getLogger(__name__)


class PrometheusRemoteStorage:
    """Handler for the Prometheus remote storage protocol.

    Both remote write and remote read exchange Snappy-compressed (block
    format) Protobuf messages over HTTP POST.

    Protocol details:
    - Content-Type: application/x-protobuf
    - Content-Encoding: snappy
    - Write body: WriteRequest, no response body
    - Read body: ReadRequest, response body ReadResponse

    Example:
        handler = PrometheusRemoteStorage()

        read_request = handler.decode_read_request(body)
        query = handler.read_request_to_query(read_request)
        ...
        payload = handler.encode_read_response(series)
    """

    @staticmethod
    def _decode(compressed_data: bytes, message: Any) -> Any:
        message_type = type(message).__name__
        try:
            logger.debug(f"Decompressing {len(compressed_data)} bytes with Snappy")
            decompressed = snappy.decompress(compressed_data)
            logger.debug(f"Decompressed to {len(decompressed)} bytes")
        except Exception as e:
            logger.error(f"Failed to decompress Snappy data: {e}")
            raise ProtocolDecodeError(message_type, f"snappy: {e}") from e

        try:
            message.ParseFromString(decompressed)
        except DecodeError as e:
            logger.error(f"Failed to unmarshal {message_type}: {e}")
            raise ProtocolDecodeError(message_type, f"protobuf: {e}") from e

        return message

    @staticmethod
    def decode_write_request(compressed_data: bytes) -> prompb.WriteRequest:
        """Decode a remote write request body.

        Args:
            compressed_data: Snappy-compressed Protobuf data

        Returns:
            WriteRequest: Decoded write request with time series

        Raises:
            ProtocolDecodeError: If decompression or decoding fails
        """
        write_request = PrometheusRemoteStorage._decode(
            compressed_data, prompb.WriteRequest()
        )
        logger.info(
            f"Decoded WriteRequest with {len(write_request.timeseries)} time series"
        )
        return write_request

    @staticmethod
    def decode_read_request(compressed_data: bytes) -> prompb.ReadRequest:
        """Decode a remote read request body.

        Args:
            compressed_data: Snappy-compressed Protobuf data

        Returns:
            ReadRequest: Decoded read request with its queries

        Raises:
            ProtocolDecodeError: If decompression or decoding fails
        """
        read_request = PrometheusRemoteStorage._decode(
            compressed_data, prompb.ReadRequest()
        )
        logger.debug(f"Decoded ReadRequest with {len(read_request.queries)} queries")
        return read_request

    @staticmethod
    def write_request_to_series(
        write_request: prompb.WriteRequest,
    ) -> List[TimeSeries]:
        """Convert the time series of a write request.

        Labels repeated within one series keep their last value. Sample
        order is preserved.

        Args:
            write_request: Decoded write request

        Returns:
            List[TimeSeries]: One entry per Protobuf time series
        """
        return [
            TimeSeries(
                labels={label.name: label.value for label in ts.labels},
                samples=[
                    Sample(timestamp_ms=sample.timestamp, value=sample.value)
                    for sample in ts.samples
                ],
            )
            for ts in write_request.timeseries
        ]

    @staticmethod
    def read_request_to_query(read_request: prompb.ReadRequest) -> Query:
        """Extract the single query of a read request.

        Args:
            read_request: Decoded read request

        Returns:
            Query: The query with its matchers and time range

        Raises:
            MultipleQueriesError: If the request does not carry exactly one query
            ProtocolDecodeError: If a matcher has an unknown type
        """
        if len(read_request.queries) != 1:
            raise MultipleQueriesError(len(read_request.queries))

        query = read_request.queries[0]
        matchers = []
        for matcher in query.matchers:
            try:
                match_type = MatchType(matcher.type)
            except ValueError as e:
                raise ProtocolDecodeError(
                    "ReadRequest", f"unknown matcher type {matcher.type}"
                ) from e
            matchers.append(
                LabelMatcher(name=matcher.name, value=matcher.value, match_type=match_type)
            )

        return Query(
            matchers=matchers,
            start_timestamp_ms=query.start_timestamp_ms,
            end_timestamp_ms=query.end_timestamp_ms,
        )

    @staticmethod
    def series_to_proto(series: TimeSeries) -> prompb.TimeSeries:
        """Convert one time series to its Protobuf form."""
        return prompb.TimeSeries(
            labels=[
                prompb.Label(name=name, value=value)
                for name, value in series.labels.items()
            ],
            samples=[
                prompb.Sample(value=sample.value, timestamp=sample.timestamp_ms)
                for sample in series.samples
            ],
        )

    @staticmethod
    def encode_read_response(series: Sequence[TimeSeries]) -> bytes:
        """Encode the answer to a single-query read request.

        Args:
            series: Time series answering the query

        Returns:
            bytes: Snappy-compressed ReadResponse with one QueryResult
        """
        response = prompb.ReadResponse(
            results=[
                prompb.QueryResult(
                    timeseries=[
                        PrometheusRemoteStorage.series_to_proto(ts) for ts in series
                    ]
                )
            ]
        )
        return snappy.compress(response.SerializeToString())

    @staticmethod
    def get_statistics(
        write_request: prompb.WriteRequest,
    ) -> Dict[str, Any]:
        """Get statistics about the write request.

        Args:
            write_request: Decoded write request

        Returns:
            dict: Series and sample counts, label cardinality and time range

        Example:
            >>> stats = PrometheusRemoteStorage.get_statistics(write_request)
            >>> print(f"Total samples: {stats['total_samples']}")
        """
        stats = {
            "total_time_series": len(write_request.timeseries),
            "total_samples": 0,
            "unique_metrics": set(),
            "unique_labels": set(),
            "min_timestamp": None,
            "max_timestamp": None,
        }

        for ts in write_request.timeseries:
            stats["total_samples"] += len(ts.samples)

            for label in ts.labels:
                stats["unique_labels"].add(label.name)
                if label.name == "__name__":
                    stats["unique_metrics"].add(label.value)

            for sample in ts.samples:
                if stats["min_timestamp"] is None or sample.timestamp < stats["min_timestamp"]:
                    stats["min_timestamp"] = sample.timestamp
                if stats["max_timestamp"] is None or sample.timestamp > stats["max_timestamp"]:
                    stats["max_timestamp"] = sample.timestamp

        stats["unique_metrics"] = len(stats["unique_metrics"])
        stats["unique_labels"] = len(stats["unique_labels"])

        return stats
