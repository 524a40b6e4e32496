"""
cardtrace.commands - CLI command implementations
"""
