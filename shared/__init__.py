"""
Shared Kernel

Base classes and utilities shared by the app packages: the domain
building blocks (aggregates, events, value objects) and the application
plumbing (unit of work, message bus).
"""
