"""Staffing assignment: catalog loading, eligibility and registration writes."""
