"""Gradient shading and region partitioning of global equirectangular scalar fields."""

from .geometry import great_circle_angle
from .gradients import (
    compute_gradient_field,
    fit_gradient,
    fit_gradient_with_reason,
    gradient_colors,
    gradient_to_color,
    to_magnitude_bearing,
)
from .models import FitFailure, GeoGrid, GradientField, PartitionMap
from .neighbors import neighbors_within
from .partition import colorize_labels, generate_colors, keep_at_least, label, partition, partition_map

__all__ = [
    "FitFailure",
    "GeoGrid",
    "GradientField",
    "PartitionMap",
    "colorize_labels",
    "compute_gradient_field",
    "fit_gradient",
    "fit_gradient_with_reason",
    "generate_colors",
    "gradient_colors",
    "gradient_to_color",
    "great_circle_angle",
    "keep_at_least",
    "label",
    "neighbors_within",
    "partition",
    "partition_map",
    "to_magnitude_bearing",
]
