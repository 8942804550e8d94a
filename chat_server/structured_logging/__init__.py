"""
Structured logging package for the chat relay server.

All imports should use explicit paths like
'from chat_server.structured_logging.enhanced_logging_config import get_logger'.

The directory is named 'structured_logging' rather than 'logging' to avoid
shadowing Python's standard library logging module.
"""
