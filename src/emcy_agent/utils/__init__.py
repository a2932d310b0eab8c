"""
Utils Module - Infrastructure Utilities
=======================================

Provides infrastructure utilities for logging, HTTP client construction
and JSON serialization.

Modules:
    logger: Structured JSON logging with rotation and PII redaction
    http_logger: httpx event hooks that log sanitized requests/responses
    client_factory: httpx.AsyncClient creation with streaming-friendly timeouts
    json_utils: Compact JSON helpers used for transcript entries

Logging (logger.py):
    - Console handler: Human-readable format to stderr
    - Conversation handler: JSON Lines to {log_dir}/conversations.jsonl
    - Error handler: JSON Lines to {log_dir}/errors.jsonl

    File handlers are only attached when EMCY_LOG_DIR is set.
"""
