"""
Repository layer for data access operations.

Every list operation pages through one generic keyset engine
(`pagination.KeysetPaginator`) configured by a per-entity `SortSpec`.
"""
