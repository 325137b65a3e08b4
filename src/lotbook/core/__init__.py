"""Core primitives shared by both engines: money, dates, config, errors, logging."""
