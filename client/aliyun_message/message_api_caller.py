"""
Message API Client Module

This module provides functionality to send SMS messages and make TTS voice
calls through the provider's message APIs, signing every request with the
POP protocol (see signing.py).
"""

import os
import json
import logging
from typing import Dict, Optional, Tuple, Union

import requests

from .params import Param
from .signing import (
    gen_nonce,
    gen_phone_numbers_str,
    gen_timestamp,
    signed_string,
    sorted_query_string,
)

logger = logging.getLogger(__name__)

SMS_HOST = "dysmsapi.aliyuncs.com"
VMS_HOST = "dyvmsapi.aliyuncs.com"
API_VERSION = "2017-05-25"
REGION_ID = "cn-hangzhou"
HTTP_METHOD = "GET"


def get_default_config_path() -> str:
    """Get the default config file path following XDG standards"""
    config_path = os.environ.get("ALIYUN_MESSAGE_CONFIG")
    if config_path:
        return config_path

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return os.path.join(xdg_config_home, "aliyun_message", "config.json")

    home = os.environ.get("HOME")
    if home:
        return os.path.join(home, ".config", "aliyun_message", "config.json")

    return os.path.join(os.getcwd(), ".config", "aliyun_message", "config.json")


class MessageAPIConfig:
    """Configuration for the message API client"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or get_default_config_path()
        self.access_key_id: str = ""
        self.access_key_secret: str = ""

        # Defaults for the CLI, none of them required
        self.sign_name: Optional[str] = None
        self.template_code: Optional[str] = None
        self.called_show_number: Optional[str] = None
        self.tts_code: Optional[str] = None
        self.timeout: Optional[float] = None

        self._load_config()

    def _load_config(self):
        """Load configuration from file, then apply environment overrides"""
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            config_data = json.load(f)

        # Credentials may come from the environment instead of the file
        env_overrides = {
            'access_key_id': os.environ.get("ALIYUN_ACCESS_KEY_ID"),
            'access_key_secret': os.environ.get("ALIYUN_ACCESS_KEY_SECRET"),
        }
        for field, value in env_overrides.items():
            if value:
                config_data[field] = value

        required_fields = ['access_key_id', 'access_key_secret']
        for field in required_fields:
            if not config_data.get(field):
                raise ValueError(f"Missing required config field: {field}")
            setattr(self, field, config_data[field])

        self.sign_name = config_data.get('sign_name')
        self.template_code = config_data.get('template_code')
        self.called_show_number = config_data.get('called_show_number')
        self.tts_code = config_data.get('tts_code')
        self.timeout = config_data.get('timeout')


def _string_field(data: Dict, key: str) -> str:
    # null decodes as "", any other non-string is a shape mismatch
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"Expected {key} to be a string, got {type(value).__name__}")
    return value


class Response:
    """Common response of the message APIs"""

    def __init__(self, request_id: str = "", code: str = "", message: str = "",
                 raw: Optional[Dict] = None):
        self.request_id = request_id
        self.code = code
        self.message = message
        self.raw = raw if raw is not None else {}

    @property
    def ok(self) -> bool:
        return self.code.upper() == "OK"

    @classmethod
    def _fields(cls, data: Dict) -> Dict:
        return {
            'request_id': _string_field(data, 'RequestId'),
            'code': _string_field(data, 'Code'),
            'message': _string_field(data, 'Message'),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Response":
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        return cls(raw=data, **cls._fields(data))

    @classmethod
    def from_json(cls, body: Union[str, bytes]) -> "Response":
        """Decode a response body, raising ValueError if it is not a JSON object"""
        return cls.from_dict(json.loads(body))

    def __repr__(self):
        return (f"{type(self).__name__}(request_id={self.request_id!r}, "
                f"code={self.code!r}, message={self.message!r})")


class SMSResponse(Response):
    """Response of SendSms. biz_id can be used to query the SMS status."""

    def __init__(self, biz_id: str = "", **kwargs):
        super().__init__(**kwargs)
        self.biz_id = biz_id

    @classmethod
    def _fields(cls, data: Dict) -> Dict:
        fields = super()._fields(data)
        fields['biz_id'] = _string_field(data, 'BizId')
        return fields


class SingleCallByTTSResponse(Response):
    """Response of SingleCallByTts"""

    def __init__(self, call_id: str = "", **kwargs):
        super().__init__(**kwargs)
        self.call_id = call_id

    @classmethod
    def _fields(cls, data: Dict) -> Dict:
        fields = super()._fields(data)
        fields['call_id'] = _string_field(data, 'CallId')
        return fields


def _json_param(value: Union[str, Dict]) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False)


class Client:
    """
    Client for the message APIs.

    A client should be reused to send SMS, make TTS calls... It only holds
    the credentials and a requests session, so it can be shared between
    threads as long as the session is.
    """

    def __init__(self, access_key_id: str, access_key_secret: str,
                 session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self._access_key_id = access_key_id
        self._access_key_secret = access_key_secret
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: MessageAPIConfig,
                    session: Optional[requests.Session] = None) -> "Client":
        return cls(config.access_key_id, config.access_key_secret,
                   session=session, timeout=config.timeout)

    @property
    def access_key_id(self) -> str:
        return self._access_key_id

    @property
    def access_key_secret(self) -> str:
        return self._access_key_secret

    def close(self):
        """Close the session if this client created it"""
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - close the session"""
        self.close()

    def set_default_common_params(self, params: Dict[str, str]) -> None:
        """Set the common parameters every request carries, in place"""
        params["AccessKeyId"] = self._access_key_id
        params["Timestamp"] = gen_timestamp()
        params["Format"] = "JSON"
        params["SignatureMethod"] = "HMAC-SHA1"
        params["SignatureVersion"] = "1.0"
        params["SignatureNonce"] = gen_nonce()

    def signed_string(self, http_method: str, sorted_query_str: str) -> str:
        """Sign a sorted query string with this client's secret"""
        return signed_string(http_method, sorted_query_str, self._access_key_secret)

    def build_request_url(self, host: str, action: str, business_params: Dict[str, str],
                          *params: Param) -> str:
        """
        Assemble and sign the request URL for an action.

        Args:
            host: API host, e.g. SMS_HOST
            action: Action name, e.g. "SendSms"
            business_params: Required parameters of the action
            *params: Overrides, applied last

        Returns:
            str: "http://<host>/?Signature=<sig>&<sorted query string>"
        """
        values: Dict[str, str] = {}
        self.set_default_common_params(values)

        values["Action"] = action
        values["Version"] = API_VERSION
        values["RegionId"] = REGION_ID
        values.update(business_params)

        for p in params:
            p.apply(values)

        sorted_query_str = sorted_query_string(values)
        signature = self.signed_string(HTTP_METHOD, sorted_query_str)

        return f"http://{host}/?Signature={signature}&{sorted_query_str}"

    def _call(self, host: str, action: str, business_params: Dict[str, str],
              response_cls, params) -> Tuple[bool, Response]:
        url = self.build_request_url(host, action, business_params, *params)

        logger.debug(f"Calling {action} on {host}")
        http_response = self.session.get(url, timeout=self.timeout)
        logger.debug(f"{action} returned HTTP {http_response.status_code}")

        response = response_cls.from_json(http_response.text)
        if not response.ok:
            logger.info(f"{action} rejected - Code: {response.code}, Message: {response.message}, "
                        f"RequestId: {response.request_id}")
            return False, response

        logger.info(f"{action} accepted - RequestId: {response.request_id}")
        return True, response

    def send_sms(self, phone_numbers, sign_name: str, template_code: str,
                 template_param: Union[str, Dict], *params: Param) -> Tuple[bool, SMSResponse]:
        """
        Send the SMS to phone numbers.

        Args:
            phone_numbers: One or more phone numbers. Sending to one number at a
                time is recommended for verification codes.
            sign_name: Approved signature name
            template_code: Approved template code, e.g. "SMS_0000"
            template_param: JSON (or a dict) to render the template,
                e.g. {"code":"1234","product":"ytx"}
            *params: Optional parameters, e.g. timestamp(), out_id()

        Returns:
            Tuple[bool, SMSResponse]: Whether the provider answered "OK", and
            the decoded response

        Raises:
            ValueError: No recipient, or the body is not a JSON object
            requests.RequestException: Transport failure
        """
        if isinstance(phone_numbers, str):
            phone_numbers = [phone_numbers]
        phone_numbers = [number for number in phone_numbers if number]
        if not phone_numbers:
            raise ValueError("At least one phone number is required")

        business_params = {
            "PhoneNumbers": gen_phone_numbers_str(phone_numbers),
            "SignName": sign_name,
            "TemplateCode": template_code,
            "TemplateParam": _json_param(template_param),
        }
        return self._call(SMS_HOST, "SendSms", business_params, SMSResponse, params)

    def make_single_call_by_tts(self, called_show_number: str, called_number: str, tts_code: str,
                                tts_param: Union[str, Dict],
                                *params: Param) -> Tuple[bool, SingleCallByTTSResponse]:
        """
        Make a single voice call that reads a TTS template.

        Args:
            called_show_number: Number shown to the callee (purchased in the console)
            called_number: Phone number to call
            tts_code: Approved TTS template code, e.g. "TTS_0000"
            tts_param: JSON (or a dict) to render the template
            *params: Optional parameters, e.g. play_times(), volume()

        Returns:
            Tuple[bool, SingleCallByTTSResponse]
        """
        if not called_number:
            raise ValueError("called_number is required")

        business_params = {
            "CalledShowNumber": called_show_number,
            "CalledNumber": called_number,
            "TtsCode": tts_code,
            "TtsParam": _json_param(tts_param),
        }
        return self._call(VMS_HOST, "SingleCallByTts", business_params,
                          SingleCallByTTSResponse, params)
