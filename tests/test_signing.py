import uuid
from datetime import datetime, timedelta, timezone

import pytest

from aliyun_message import signing
from aliyun_message.signing import (
    gen_nonce,
    gen_phone_numbers_str,
    gen_timestamp,
    signed_string,
    sorted_query_string,
    special_url_encode,
    string_to_sign,
)


# Example request published in the provider's signing documentation
DOC_PARAMS = {
    "AccessKeyId": "testId",
    "Action": "SendSms",
    "Format": "XML",
    "OutId": "123",
    "PhoneNumbers": "15300000001",
    "RegionId": "cn-hangzhou",
    "SignName": "阿里云短信测试专用",
    "SignatureMethod": "HMAC-SHA1",
    "SignatureNonce": "45e25e9b-0a6f-4070-8c85-2956eda1b466",
    "SignatureVersion": "1.0",
    "TemplateCode": "SMS_71390007",
    "TemplateParam": '{"customer":"test"}',
    "Timestamp": "2017-07-12T02:42:19Z",
    "Version": "2017-05-25",
}


def test_special_url_encode_deviations():
    assert special_url_encode("a b*~c") == "a%20b%2A~c"
    assert special_url_encode("/") == "%2F"
    assert special_url_encode("a+b") == "a%2Bb"


def test_special_url_encode_does_not_double_encode_markers():
    assert special_url_encode("%7E") == "%257E"
    assert special_url_encode("100%") == "100%25"


def test_sorted_query_string_ignores_insertion_order():
    a = {"b": "2", "a": "1", "c": "x y"}
    b = {"c": "x y", "a": "1", "b": "2"}
    assert sorted_query_string(a) == sorted_query_string(b) == "a=1&b=2&c=x+y"


def test_sorted_query_string_encodes_keys_and_values():
    params = {"TemplateParam": '{"code":"1234"}', "Timestamp": "2017-07-12T02:42:19Z"}
    assert sorted_query_string(params) == (
        "TemplateParam=%7B%22code%22%3A%221234%22%7D&Timestamp=2017-07-12T02%3A42%3A19Z"
    )


def test_sorted_query_string_is_byte_ordered():
    # uppercase sorts before lowercase
    assert sorted_query_string({"a": "1", "B": "2"}) == "B=2&a=1"


def test_string_to_sign():
    assert string_to_sign("GET", "Action=SendSms") == "GET&%2F&Action%3DSendSms"


def test_signed_string_regression_vector():
    assert signed_string("GET", "Action=SendSms", "testSecret") == "FeC162BWF8%2Bxj0kCOALgPmYpx7o%3D"


def test_signed_string_matches_documented_example():
    query = sorted_query_string(DOC_PARAMS)
    assert signed_string("GET", query, "testSecret") == "zJDF%2BLrzhj%2FThnlvIToysFRq6t4%3D"


def test_signed_string_is_deterministic_and_sensitive():
    base = signed_string("GET", "Action=SendSms", "testSecret")
    assert signed_string("GET", "Action=SendSms", "testSecret") == base
    assert signed_string("GET", "Action=SendSmt", "testSecret") != base
    assert signed_string("GET", "Action=SendSms", "testSecreu") != base
    assert signed_string("POST", "Action=SendSms", "testSecret") != base


def test_gen_timestamp_formats_utc():
    assert gen_timestamp(datetime(2017, 7, 12, 2, 42, 19)) == "2017-07-12T02:42:19Z"

    beijing = timezone(timedelta(hours=8))
    assert gen_timestamp(datetime(2017, 7, 12, 10, 42, 19, 123456, tzinfo=beijing)) == "2017-07-12T02:42:19Z"


def test_gen_timestamp_defaults_to_now():
    before = datetime.now(timezone.utc).replace(microsecond=0)
    stamp = datetime.strptime(gen_timestamp(), "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=timezone.utc)
    assert before <= stamp <= before + timedelta(seconds=5)


def test_gen_phone_numbers_str():
    assert gen_phone_numbers_str(["13800138000", "13900139000"]) == "13800138000,13900139000"
    assert gen_phone_numbers_str("13800138000") == "13800138000"
    assert gen_phone_numbers_str([]) == ""


def test_gen_nonce_is_unique_uuid():
    first, second = gen_nonce(), gen_nonce()
    assert first != second
    assert str(uuid.UUID(first)) == first


def test_gen_nonce_propagates_failures(monkeypatch):
    def broken():
        raise OSError("no entropy")

    monkeypatch.setattr(signing.uuid, "uuid4", broken)
    with pytest.raises(OSError):
        gen_nonce()
