"""
Marketplace Domain Module

Pure domain logic: account provisioning, pricing, course presentation,
course factory, cache entries and event payloads.
"""
