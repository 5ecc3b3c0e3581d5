"""Sensor line parsers.

:mod:`imu` turns JSON or CSV logger output into
:class:`~sensehar.core.models.ImuSample` objects used across the pipeline.
"""

from .imu import parse_line, sample_from_mapping

__all__ = ["parse_line", "sample_from_mapping"]
