"""
Catalog database configuration.
Stores the schema descriptor recorded for every (tenant, collection) pair.
"""


class Collections:
    """Collection names in the catalog database."""
    CONFIGS = "configs"

    # Index definitions for each collection
    INDEXES = {
        "configs": [
            {"keys": [("db", 1), ("collection", 1)], "unique": True},
        ],
    }
