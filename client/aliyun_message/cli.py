import argparse
import os
import sys
import json

import requests

from .logging_config import setup_logging, log_message_event
from .message_api_caller import Client, MessageAPIConfig
from .params import out_id, play_times
from .signing import signed_string

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _load_config(args: argparse.Namespace) -> MessageAPIConfig:
    setup_logging(log_level=args.log_level)
    return MessageAPIConfig(args.config)


def _print_response(args: argparse.Namespace, ok: bool, response, summary: str) -> int:
    if args.verbose:
        print(json.dumps(response.raw, indent=2, ensure_ascii=False))
    elif ok:
        print(summary)
    else:
        print(f"Rejected: {response.code} - {response.message}", file=sys.stderr)
    return 0 if ok else 1


def cmd_send_sms(args: argparse.Namespace) -> int:
    """Send an SMS message"""
    try:
        config = _load_config(args)

        sign_name = args.sign_name or config.sign_name
        template_code = args.template_code or config.template_code
        if not sign_name or not template_code:
            print("Error: --sign-name and --template-code are required (or set them in config)",
                  file=sys.stderr)
            return 1

        params = []
        if args.out_id:
            params.append(out_id(args.out_id))

        with Client.from_config(config) as client:
            ok, response = client.send_sms(args.phone_numbers, sign_name, template_code,
                                           args.template_param, *params)

        log_message_event('sms_sent' if ok else 'sms_failed', 'SendSms',
                          request_id=response.request_id, code=response.code,
                          biz_id=response.biz_id, success=ok,
                          error=None if ok else response.message)
        return _print_response(args, ok, response, f"SMS sent successfully! BizId: {response.biz_id}")
    except (requests.RequestException, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_make_call(args: argparse.Namespace) -> int:
    """Make a single TTS voice call"""
    try:
        config = _load_config(args)

        show_number = args.show_number or config.called_show_number
        tts_code = args.tts_code or config.tts_code
        if not show_number or not tts_code:
            print("Error: --show-number and --tts-code are required (or set them in config)",
                  file=sys.stderr)
            return 1

        params = []
        if args.play_times:
            params.append(play_times(args.play_times))
        if args.out_id:
            params.append(out_id(args.out_id))

        with Client.from_config(config) as client:
            ok, response = client.make_single_call_by_tts(show_number, args.called_number,
                                                          tts_code, args.tts_param, *params)

        log_message_event('call_made' if ok else 'call_failed', 'SingleCallByTts',
                          request_id=response.request_id, code=response.code,
                          call_id=response.call_id, success=ok,
                          error=None if ok else response.message)
        return _print_response(args, ok, response, f"Call placed successfully! CallId: {response.call_id}")
    except (requests.RequestException, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_sign(args: argparse.Namespace) -> int:
    """Print the POP signature of a sorted query string"""
    secret = args.secret or os.environ.get("ALIYUN_ACCESS_KEY_SECRET")
    if not secret:
        print("Error: --secret or ALIYUN_ACCESS_KEY_SECRET is required", file=sys.stderr)
        return 1
    print(signed_string(args.method, args.query, secret))
    return 0


def get_default_config_dir() -> str:
    """Get the default configuration directory following XDG standards"""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return os.path.join(xdg_config_home, "aliyun_message")

    home = os.environ.get("HOME")
    if home:
        return os.path.join(home, ".config", "aliyun_message")

    return os.path.join(os.getcwd(), ".config", "aliyun_message")


def cmd_init(args: argparse.Namespace) -> int:
    """Create the config directory and a config file"""
    config_dir = args.config_dir or get_default_config_dir()
    config_path = os.path.join(config_dir, "config.json")

    if os.path.exists(config_path) and not args.force:
        print(f"Config file already exists: {config_path}")
        print("Use --force to overwrite existing files")
        return 1

    try:
        os.makedirs(config_dir, exist_ok=True)
    except OSError as e:
        print(f"Failed to create config directory: {e}", file=sys.stderr)
        return 1

    config_data = {
        "access_key_id": args.access_key_id or "",
        "access_key_secret": args.access_key_secret or "",
        "sign_name": args.sign_name,
        "template_code": args.template_code,
        "called_show_number": args.show_number,
        "tts_code": args.tts_code,
    }
    # Remove None values
    config_data = {k: v for k, v in config_data.items() if v is not None}

    try:
        with open(config_path, 'w') as f:
            json.dump(config_data, f, indent=2, ensure_ascii=False)
        os.chmod(config_path, 0o600)
    except OSError as e:
        print(f"Failed to create config file: {e}", file=sys.stderr)
        return 1

    print(f"Created config file: {config_path}")
    return 0


def _add_common_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p.add_argument("--verbose", "-v", action="store_true", help="Print the full JSON response")
    p.add_argument("--log-level", default=None, type=str.upper, choices=LOG_LEVELS,
                   help="Logging level (default: LOG_LEVEL or WARNING)")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="aliyun-message", description="SMS and TTS voice call client")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create a config file", description="Create the config directory and a config.json holding credentials and defaults.")
    p_init.add_argument("--config-dir", help="Config directory (default: XDG_CONFIG_HOME/aliyun_message or ~/.config/aliyun_message)")
    p_init.add_argument("--access-key-id", help="Access key ID")
    p_init.add_argument("--access-key-secret", help="Access key secret")
    p_init.add_argument("--sign-name", help="Default SMS signature name")
    p_init.add_argument("--template-code", help="Default SMS template code")
    p_init.add_argument("--show-number", help="Default number shown on TTS calls")
    p_init.add_argument("--tts-code", help="Default TTS template code")
    p_init.add_argument("--force", action="store_true", help="Overwrite existing files")
    p_init.set_defaults(func=cmd_init)

    p_send = sub.add_parser("send", help="Send an SMS message", description="Send a templated SMS to one or more phone numbers.")
    p_send.add_argument("phone_numbers", nargs="+", help="Recipient phone numbers")
    p_send.add_argument("--sign-name", help="Signature name (overrides config)")
    p_send.add_argument("--template-code", help="Template code (overrides config)")
    p_send.add_argument("--template-param", default="{}", help="JSON to render the template (default: {})")
    p_send.add_argument("--out-id", help="Caller's own ID echoed in status reports")
    _add_common_options(p_send)
    p_send.set_defaults(func=cmd_send_sms)

    p_call = sub.add_parser("call", help="Make a single TTS voice call", description="Call a phone number and play a TTS template.")
    p_call.add_argument("called_number", help="Phone number to call")
    p_call.add_argument("--show-number", help="Number shown to the callee (overrides config)")
    p_call.add_argument("--tts-code", help="TTS template code (overrides config)")
    p_call.add_argument("--tts-param", default="{}", help="JSON to render the template (default: {})")
    p_call.add_argument("--play-times", type=int, default=None, help="Number of times to play the message")
    p_call.add_argument("--out-id", help="Caller's own ID echoed in status reports")
    _add_common_options(p_call)
    p_call.set_defaults(func=cmd_make_call)

    p_sign = sub.add_parser("sign", help="Sign a sorted query string", description="Print the POP signature of an already sorted and encoded query string.")
    p_sign.add_argument("query", help="Sorted query string, e.g. Action=SendSms")
    p_sign.add_argument("--secret", help="Access key secret (default: ALIYUN_ACCESS_KEY_SECRET)")
    p_sign.add_argument("--method", default="GET", help="HTTP method (default: GET)")
    p_sign.set_defaults(func=cmd_sign)

    return p


def main(argv=None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
