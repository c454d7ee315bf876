"""
Aliyun Message Client

A Python client library for the SMS and TTS voice call APIs, signing requests
with the POP protocol.
"""

from .message_api_caller import (
    Client,
    MessageAPIConfig,
    Response,
    SMSResponse,
    SingleCallByTTSResponse,
)
from .params import (
    Param,
    param,
    timestamp,
    signature_nonce,
    region_id,
    out_id,
    sms_up_extend_code,
    play_times,
    volume,
    speed,
)
from .signing import special_url_encode, sorted_query_string, signed_string

__all__ = [
    'Client',
    'MessageAPIConfig',
    'Response',
    'SMSResponse',
    'SingleCallByTTSResponse',
    'Param',
    'param',
    'timestamp',
    'signature_nonce',
    'region_id',
    'out_id',
    'sms_up_extend_code',
    'play_times',
    'volume',
    'speed',
    'special_url_encode',
    'sorted_query_string',
    'signed_string',
]

__version__ = "0.1.0"
