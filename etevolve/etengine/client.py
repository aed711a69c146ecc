"""
HTTP client for the ETEngine scenario API.

A client owns a single remote scenario.  Every calculation resets that
scenario, applies the given user values and asks for one query, so calls on
the same client must not overlap.

Example
-------
    client = ETEngineClient()
    client.calculate({"households_insulation_level_old_houses": 2.0}, "etflex_score")
    # => {"present": 123, "future": 234, "unit": "#"}
    # "future" contains the number we are interested in.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import requests
from loguru import logger

from etevolve.exceptions import EvaluationError

DEFAULT_BASE_URL = "http://et-engine.com/api/v3"
DEFAULT_TIMEOUT = 30.0


class ETEngineClient:
    """Thin wrapper around the scenario, calculation and input endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
        title: str = "API",
        area_code: str = "nl",
        start_year: int = 2011,
        end_year: int = 2030,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.title = title
        self.area_code = area_code
        self.start_year = start_year
        self.end_year = end_year
        self.scenario_id: Optional[int] = None
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise EvaluationError(
                f"{method} {url} failed: {exc}",
                context={"method": method, "url": url},
            ) from exc
        except ValueError as exc:
            raise EvaluationError(
                f"{method} {url} returned invalid JSON",
                context={"method": method, "url": url},
            ) from exc
        if not isinstance(payload, dict):
            raise EvaluationError(
                f"{method} {url} returned {type(payload).__name__}, expected a JSON object",
                context={"method": method, "url": url},
            )
        return payload

    def create_scenario(self) -> Dict[str, Any]:
        """Create the scenario every calculation of this client runs against."""

        scenario = self._request(
            "POST",
            "/scenarios/",
            data={
                "title": self.title,
                "area_code": self.area_code,
                "start_year": self.start_year,
                "end_year": self.end_year,
            },
        )
        if "id" not in scenario:
            raise EvaluationError("Scenario response has no id", context={"response": scenario})
        self.scenario_id = scenario["id"]
        logger.info("Created ETEngine scenario {}", self.scenario_id)
        return scenario

    def calculate(
        self,
        inputs: Mapping[str, float],
        query: str,
        fixed: Optional[Mapping[str, float]] = None,
    ) -> Dict[str, Any]:
        """Apply ``inputs`` and ``fixed`` user values and return the query result."""

        if self.scenario_id is None:
            self.create_scenario()

        params: Dict[str, Any] = {"gqueries[]": query, "autobalance": "true", "reset": "true"}
        for key, value in inputs.items():
            params[f"scenario[user_values][{key}]"] = value
        for key, value in (fixed or {}).items():
            params[f"scenario[user_values][{key}]"] = value

        result = self._request("PUT", f"/scenarios/{self.scenario_id}", data=params)
        if result.get("errors"):
            logger.warning("ETEngine reported errors: {}", result["errors"])
        gqueries = result.get("gqueries")
        if not isinstance(gqueries, dict) or query not in gqueries:
            raise EvaluationError(
                f"Response has no result for query '{query}'",
                context={"query": query, "errors": result.get("errors")},
            )
        return gqueries[query]

    def fetch_input(self, key: str) -> Dict[str, Any]:
        """Metadata (``min``, ``max``, ``step``...) of a single input."""
        return self._request("GET", f"/inputs/{key}")
