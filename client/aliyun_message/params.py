"""
Optional request parameters

A Param mutates the in-flight parameter set right before it is signed, so it
can replace any default (Timestamp, SignatureNonce, RegionId...) or add one
of the optional business parameters of an action.

    client.send_sms(["13800138000"], "my_product", "SMS_0000", '{"code":"1234"}',
                    timestamp("2017-07-12T02:42:19Z"), out_id("order-42"))
"""

from datetime import datetime
from typing import Callable, Dict, Union

from .signing import gen_timestamp


class Param:
    """One override applied to a request's parameter set"""

    def __init__(self, f: Callable[[Dict[str, str]], None]):
        self._f = f

    def apply(self, params: Dict[str, str]) -> None:
        self._f(params)


def param(name: str, value) -> Param:
    """Set any parameter by name"""
    def _set(params: Dict[str, str]) -> None:
        params[name] = str(value)
    return Param(_set)


def timestamp(value: Union[datetime, str]) -> Param:
    """Override Timestamp with a datetime or an already formatted string"""
    if isinstance(value, datetime):
        value = gen_timestamp(value)
    return param("Timestamp", value)


def signature_nonce(value: str) -> Param:
    return param("SignatureNonce", value)


def region_id(value: str) -> Param:
    return param("RegionId", value)


def out_id(value: str) -> Param:
    """Caller's own ID, echoed back in status reports"""
    return param("OutId", value)


def sms_up_extend_code(value: str) -> Param:
    """Upstream SMS extend code (SendSms only)"""
    return param("SmsUpExtendCode", value)


def play_times(value: int) -> Param:
    """Number of times the TTS message is played (SingleCallByTts only)"""
    return param("PlayTimes", int(value))


def volume(value: int) -> Param:
    return param("Volume", int(value))


def speed(value: int) -> Param:
    return param("Speed", int(value))
