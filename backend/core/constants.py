"""
Core constants — **Single Source of Truth** for project-wide vocabularies.

The report category list is shared by ``accounts.Company`` (the category
an external company works on) and ``reports.Report``, so it lives here
rather than in either app.
"""

from django.db import models


class ReportCategory(models.TextChoices):
    """Closed set of issue categories a citizen can report."""

    WATER_SUPPLY = "Water Supply - Drinking Water", "Water Supply - Drinking Water"
    ARCHITECTURAL_BARRIERS = "Architectural Barriers", "Architectural Barriers"
    SEWER_SYSTEM = "Sewer System", "Sewer System"
    PUBLIC_LIGHTING = "Public Lighting", "Public Lighting"
    WASTE = "Waste", "Waste"
    ROAD_SIGNS_AND_TRAFFIC_LIGHTS = "Road Signs and Traffic Lights", "Road Signs and Traffic Lights"
    ROADS_AND_URBAN_FURNISHINGS = "Roads and Urban Furnishings", "Roads and Urban Furnishings"
    PUBLIC_GREEN_AREAS_AND_PLAYGROUNDS = "Public Green Areas and Playgrounds", "Public Green Areas and Playgrounds"
    OTHER = "Other", "Other"


# ── Organization department ─────────────────────────────────────────
# Holds the non-operational Citizen / Administrator grants (and the PRO);
# excluded from municipality department listings.
ORGANIZATION_DEPARTMENT: str = "Organization"

# ── Text limits ─────────────────────────────────────────────────────
MAX_TEXT_LENGTH: int = 2000
