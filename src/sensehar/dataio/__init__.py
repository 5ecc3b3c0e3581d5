"""Data input/output helpers (CSV/JSONL logs).

Utility modules here keep disk-level concerns isolated from the rest of the
package:
- :mod:`log_loader` reads recorded IMU logs for offline replay.
- :mod:`csv_writer` dumps feature vectors and tensors for debugging.
"""
