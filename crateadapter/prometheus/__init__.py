"""Prometheus remote storage protocol support.

This package decodes remote write and remote read requests (Snappy +
Protobuf) and encodes remote read responses.
"""

from crateadapter.prometheus.parser import PrometheusParser
from crateadapter.prometheus.protocol import PrometheusRemoteStorage

__all__ = [
    "PrometheusParser",
    "PrometheusRemoteStorage",
]
