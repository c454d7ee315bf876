"""
Logging configuration for the message client

The library itself only creates module loggers; handlers are installed by the
CLI (or by the embedding application) through setup_logging().
"""

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone


def setup_logging(log_level=None, log_file=None, max_bytes=10*1024*1024, backup_count=5):
    """
    Set up logging for the aliyun-message command line tool.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (if None, logs to stderr)
        max_bytes: Maximum size of log file before rotation (default 10MB)
        backup_count: Number of backup log files to keep (default 5)
    """

    # Default log level from environment or WARNING
    if log_level is None:
        log_level = os.environ.get('LOG_LEVEL', 'WARNING')
    log_level = log_level.upper()

    # Default log file from environment
    if log_file is None:
        log_file = os.environ.get('LOG_FILE')

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    level = logging.getLevelName(log_level)
    if not isinstance(level, int):
        raise ValueError(f"Invalid log level: {log_level}")
    root_logger.setLevel(level)

    # Clear any existing handlers
    root_logger.handlers.clear()

    if log_file:
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count
        )
    else:
        # stdout is kept for command output
        handler = logging.StreamHandler(sys.stderr)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging initialized - Level: {log_level}, Output: {log_file or 'stderr'}")

    return logger


def log_message_event(event_type, action, request_id=None, code=None, biz_id=None,
                      call_id=None, success=True, error=None):
    """
    Log a message API event with structured key=value information.

    Args:
        event_type: Type of event (e.g., 'sms_sent', 'call_failed')
        action: API action, e.g. SendSms
        request_id: RequestId returned by the provider
        code: Status code returned by the provider
        biz_id: BizId of a sent SMS
        call_id: CallId of a TTS call
        success: Whether the operation was successful
        error: Error message if applicable
    """
    logger = logging.getLogger('aliyun_message.events')

    log_data = {
        'event_type': event_type,
        'action': action,
        'success': success,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }

    if request_id:
        log_data['request_id'] = request_id
    if code:
        log_data['code'] = code
    if biz_id:
        log_data['biz_id'] = biz_id
    if call_id:
        log_data['call_id'] = call_id
    if error:
        log_data['error'] = error

    log_message = ' '.join([f"{k}={v}" for k, v in log_data.items()])

    if success:
        logger.info(f"MESSAGE: {log_message}")
    else:
        logger.error(f"MESSAGE: {log_message}")

    return log_message
