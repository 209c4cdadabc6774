"""
O-Ring Gauge - Detection Module

This module turns raw model output tensors into detections.
"""

from .decoder import DEFAULT_CONFIDENCE_THRESHOLD, DecodeError, decode_output

__all__ = ['DEFAULT_CONFIDENCE_THRESHOLD', 'DecodeError', 'decode_output']
