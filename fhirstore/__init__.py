"""fhirstore — durable, uniquely keyed storage for clinical resources.

Resources are persisted as encoded text in a single SQLite table keyed
by (resource_type, resource_id).
"""

__version__ = "0.1.0"
