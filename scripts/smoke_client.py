"""
Smoke client for a running Family Schedule Assistant server
"""
import json
import logging
import time
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

import requests


class FamilyScheduleSmokeClient:
    """Exercises the HTTP API end to end; created rows are deleted again"""

    def __init__(self, base_url: str = "http://localhost:5000", timeout: int = 15):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def call(self, method: str, path: str, payload: Dict[str, Any] = None,
             params: Dict[str, Any] = None) -> Dict[str, Any]:
        """Send one request and return status, body and timing"""
        start_time = time.time()
        try:
            response = requests.request(
                method, f"{self.base_url}{path}", json=payload, params=params,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            self.logger.error(f"{method} {path}: timeout")
            return {"success": False, "error": "timeout", "response_time": time.time() - start_time}
        except requests.RequestException as e:
            self.logger.error(f"{method} {path}: {e}")
            return {"success": False, "error": str(e), "response_time": time.time() - start_time}

        try:
            body = response.json()
        except ValueError:
            body = {"raw": response.text[:200]}

        return {
            "success": response.ok,
            "status_code": response.status_code,
            "data": body,
            "response_time": time.time() - start_time,
        }

    def test_health_check(self) -> bool:
        response = self.call("GET", "/health")
        if response["success"] and response["data"].get("status") == "healthy":
            self.logger.info("Health check passed")
            return True
        self.logger.error(f"Health check failed: {response.get('status_code', response.get('error'))}")
        return False

    def _test_event_lifecycle(self) -> Dict[str, Any]:
        """Create an event tomorrow, see it in the week view, move it, delete it"""
        tomorrow = date.today() + timedelta(days=1)
        start = datetime.combine(tomorrow, datetime.min.time()).replace(hour=10)
        created = self.call("POST", "/api/family/events", {
            "title": "בדיקת מערכת",
            "person": "כולם",
            "category": "אחר",
            "start_time": start.isoformat(),
            "end_time": (start + timedelta(hours=1)).isoformat(),
            "notes": "smoke test",
        })
        if not created["success"]:
            return created

        event_id = created["data"]["event"]["id"]
        try:
            view = self.call("GET", "/api/family/calendar", params={"view": "week", "date": tomorrow.isoformat()})
            ids = [b["id"] for d in view.get("data", {}).get("days", []) for b in d["blocks"]]
            if event_id not in ids:
                return {"success": False, "error": "created event missing from week view",
                        "response_time": view["response_time"]}

            moved = self.call("POST", f"/api/family/events/{event_id}/move",
                              {"date": tomorrow.isoformat(), "hour": 12})
            if not moved["success"]:
                return moved
            return view
        finally:
            self.call("DELETE", f"/api/family/events/{event_id}")

    def _test_announcement_lifecycle(self) -> Dict[str, Any]:
        created = self.call("POST", "/api/family/announcements", {"text": "בדיקה", "color": 1})
        if created["success"]:
            self.call("DELETE", f"/api/family/announcements/{created['data']['announcement']['id']}")
        return created

    def _expect_status(self, method: str, path: str, status: int, payload=None) -> Dict[str, Any]:
        response = self.call(method, path, payload)
        response["success"] = response.get("status_code") == status
        return response

    def test_cases(self):
        return [
            ("list_events", lambda: self.call("GET", "/api/family/events")),
            ("list_announcements", lambda: self.call("GET", "/api/family/announcements")),
            ("month_view", lambda: self.call("GET", "/api/family/calendar", params={"view": "month"})),
            ("missing_fields", lambda: self._expect_status("POST", "/api/family/events", 400, {"title": "x"})),
            ("missing_text", lambda: self._expect_status("POST", "/api/family/parse-event", 400, {})),
            ("event_lifecycle", self._test_event_lifecycle),
            ("announcement_lifecycle", self._test_announcement_lifecycle),
        ]

    def run_test_suite(self) -> Dict[str, Any]:
        """Run complete smoke suite"""
        results = {
            "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
            "health_check": self.test_health_check(),
            "tests": [],
            "summary": {"total": 0, "passed": 0, "failed": 0, "avg_response_time": 0},
        }

        total_response_time = 0
        for name, run in self.test_cases():
            self.logger.info(f"Running {name}")
            response = run()
            test_result = {
                "name": name,
                "success": response.get("success", False),
                "response_time": response.get("response_time", 0),
            }
            if not test_result["success"]:
                test_result["error"] = response.get("error") or response.get("data")
                results["summary"]["failed"] += 1
            else:
                results["summary"]["passed"] += 1

            total_response_time += test_result["response_time"]
            results["tests"].append(test_result)
            results["summary"]["total"] += 1

        if results["summary"]["total"] > 0:
            results["summary"]["avg_response_time"] = total_response_time / results["summary"]["total"]

        return results


def main(argv: Optional[list] = None):
    import argparse

    parser = argparse.ArgumentParser(description='Family Schedule smoke client')
    parser.add_argument('--url', default='http://localhost:5000', help='API base URL')
    parser.add_argument('--output', help='Output file for test results')
    parser.add_argument('--verbose', action='store_true', help='Verbose logging')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')

    results = FamilyScheduleSmokeClient(args.url).run_test_suite()
    summary = results["summary"]
    print(f"Passed {summary['passed']}/{summary['total']}, health check: {'✓' if results['health_check'] else '✗'}")

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(results, f, indent=2, ensure_ascii=False)


if __name__ == "__main__":
    main()
