"""
Feature access permissions.

Stores one boolean access flag per (email, featureName) and exposes
read/write endpoints under /feature.
"""
