"""
Business services.

Each service wraps an ``AsyncSession`` and the repositories it needs. Public
operations are transactional: the outermost call commits once, and any
error raised before the commit rolls the whole operation back.
"""
