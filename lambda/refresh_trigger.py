"""
AWS Lambda function to trigger the cached-token refresh via the API endpoint.

Deploy this to Lambda and schedule with EventBridge for the weekly refresh.
"""

import json
import os
import urllib.error
import urllib.request
from typing import Any, Dict


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Trigger a refresh of every cached token.

    Environment Variables:
        API_URL: The service URL (e.g., https://xxx.awsapprunner.com)
        REFRESH_TIMEOUT: Request timeout in seconds (default: 900)
        REFRESH_LIMIT: Optional cap on tokens refreshed per run

    EventBridge Rule Example:
        Schedule: cron(0 3 ? * MON *)  # Mondays 03:00 UTC
    """
    api_url = os.environ.get("API_URL")
    if not api_url:
        return {"statusCode": 500, "body": json.dumps({"error": "API_URL environment variable not set"})}

    timeout = int(os.environ.get("REFRESH_TIMEOUT", "900"))
    limit = os.environ.get("REFRESH_LIMIT")

    endpoint = f"{api_url.rstrip('/')}/refresh/run-all"
    if limit:
        endpoint += f"?limit={int(limit)}"

    request = urllib.request.Request(endpoint, method="POST", headers={"Content-Type": "application/json", "User-Agent": "TokenScanRefreshTrigger/1.0"})

    try:
        print(f"Triggering refresh at: {endpoint}")

        with urllib.request.urlopen(request, timeout=timeout) as response:
            result = json.loads(response.read().decode("utf-8"))

            print(f"Refresh completed: {result.get('refreshed')}/{result.get('total')} tokens refreshed")

            return {"statusCode": 200, "body": json.dumps({"success": result.get("success", False), "refresh_result": result})}

    except urllib.error.HTTPError as e:
        error_body = e.read().decode("utf-8") if e.fp else str(e)
        print(f"Refresh request failed with HTTP {e.code}: {error_body}")

        return {"statusCode": e.code, "body": json.dumps({"success": False, "error": f"HTTP {e.code}: {error_body}"})}

    except urllib.error.URLError as e:
        print(f"Refresh request failed: {str(e)}")

        return {"statusCode": 500, "body": json.dumps({"success": False, "error": f"Connection error: {str(e)}"})}


# For local testing
if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1:
        os.environ["API_URL"] = sys.argv[1]

    result = lambda_handler({}, None)
    print(json.dumps(result, indent=2))
