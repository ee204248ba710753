"""Prometheus metrics for upload batches and derivatives."""

from prometheus_client import Counter, Histogram

# Batch outcomes: accepted, rejected, intake_refused, failed
upload_batches_total = Counter(
    "asset_upload_batches_total",
    "Total number of upload batches processed",
    ["outcome"],
)

files_received_total = Counter(
    "asset_files_received_total",
    "Total number of files written to scratch storage",
)

files_rejected_total = Counter(
    "asset_files_rejected_total",
    "Total number of files that failed validation",
    ["reason"],
)

derivatives_written_total = Counter(
    "asset_derivatives_written_total",
    "Total number of derivatives written to asset storage",
    ["kind"],  # primary, thumbnail
)

temp_cleanup_failures_total = Counter(
    "asset_temp_cleanup_failures_total",
    "Scratch file deletions that failed and were left for the sweep",
)

upload_file_size_bytes = Histogram(
    "asset_upload_file_size_bytes",
    "Size of uploaded image files",
    buckets=[10240, 102400, 524288, 1048576, 2621440, 5242880, 10485760],  # 10KB to 10MB
)

transform_duration_seconds = Histogram(
    "asset_transform_duration_seconds",
    "Time taken to produce both derivatives for one file",
    buckets=[0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10],
)


def metric_value(metric: Counter, **labels: str) -> float:
    """Current value of a counter, optionally for one label set."""
    target = metric.labels(**labels) if labels else metric
    value_obj = getattr(target, "_value", None)
    if value_obj is None:
        return 0.0
    return float(value_obj.get())
