"""
Service layer.

One service per feature. Services take the request's database session (and,
where needed, the object storage and job queue), enforce ownership and raise
``MortiScopeError`` subclasses for every expected failure.
"""
