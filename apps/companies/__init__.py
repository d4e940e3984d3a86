"""
Companies application.

A company is the tenant boundary: role and permission assignments are
always scoped to a (user, company) pair.
"""
