"""Send a signed app_mention callback to a running topicrelay server.

Development helper: builds an Events API ``event_callback`` payload, signs it
with the configured signing secret and POSTs it to /slack/events. Replies are
posted to the real Slack channel given with --channel.
"""

import argparse
import http.client
import json
import os
import sys
import time

from slack_sdk.signature import SignatureVerifier


def create_parser() -> argparse.ArgumentParser:
    """Create the command line argument parser."""
    parser = argparse.ArgumentParser(
        description="Send a signed app_mention event to the server",
    )
    parser.add_argument(
        "text",
        help="Message text, e.g. '<@U0123ABCD> how do I configure webhooks?'",
    )
    parser.add_argument("-c", "--channel", required=True, help="Slack channel ID")
    parser.add_argument(
        "-t",
        "--thread-ts",
        default=None,
        help="Root timestamp of an existing thread to reply in",
    )
    parser.add_argument(
        "-H",
        "--host",
        default="localhost",
        help="Server host (default: localhost)",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=8080,
        help="Server port (default: 8080)",
    )
    parser.add_argument(
        "--retry",
        type=int,
        default=None,
        help="Send as a retried delivery with this X-Slack-Retry-Num",
    )
    return parser


def build_payload(text: str, channel: str, thread_ts: str | None) -> dict:
    ts = f"{time.time():.6f}"
    event = {
        "type": "app_mention",
        "user": "U0LOCALDEV",
        "text": text,
        "channel": channel,
        "ts": ts,
        "event_ts": ts,
    }
    if thread_ts:
        event["thread_ts"] = thread_ts
    return {
        "type": "event_callback",
        "event_id": f"Ev{int(time.time())}",
        "event": event,
    }


def send_event(
    host: str,
    port: int,
    body: str,
    signing_secret: str | None,
    retry: int | None,
) -> tuple[bool, str]:
    """POST a payload to /slack/events.

    Returns:
        (success flag, message) tuple.
    """
    headers = {"Content-Type": "application/json"}
    if signing_secret:
        timestamp = str(int(time.time()))
        signature = SignatureVerifier(signing_secret).generate_signature(
            timestamp=timestamp, body=body
        )
        headers["X-Slack-Request-Timestamp"] = timestamp
        headers["X-Slack-Signature"] = signature or ""
    if retry is not None:
        headers["X-Slack-Retry-Num"] = str(retry)
        headers["X-Slack-Retry-Reason"] = "http_timeout"

    try:
        conn = http.client.HTTPConnection(host, port, timeout=30)
        try:
            conn.request("POST", "/slack/events", body=body, headers=headers)
            response = conn.getresponse()
            response_body = response.read().decode("utf-8")
            if response.status == 200:
                return True, "accepted"
            return False, f"{response.status} {response.reason} {response_body}"
        finally:
            conn.close()
    except ConnectionRefusedError:
        return False, "Connection refused"
    except TimeoutError:
        return False, "Connection timeout"
    except OSError as e:
        return False, str(e)


def main() -> int:
    """Main entry point."""
    args = create_parser().parse_args()
    signing_secret = os.environ.get("SLACK_SIGNING_SECRET")
    if not signing_secret:
        print("SLACK_SIGNING_SECRET not set, sending unsigned request")

    body = json.dumps(build_payload(args.text, args.channel, args.thread_ts))
    print(f"Sending app_mention to http://{args.host}:{args.port}/slack/events...")

    success, message = send_event(
        args.host, args.port, body, signing_secret, args.retry
    )
    if not success:
        print(f"Error: {message}")
        return 1

    print(f"Done: {message}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
