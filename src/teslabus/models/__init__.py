"""Typed models for Tesla API responses."""

from teslabus.models.category import RELAXED_CATEGORIES, Category, FetchOptions
from teslabus.models.token import AccessToken
from teslabus.models.vehicle import VehicleSummary

__all__ = [
    "AccessToken",
    "Category",
    "FetchOptions",
    "RELAXED_CATEGORIES",
    "VehicleSummary",
]
