"""
Tests for the ETEngine client and collaborators over a mocked HTTP API.
"""

from urllib.parse import parse_qs

import numpy as np
import pytest

from etevolve.etengine import ETEngineClient, ETEngineEvaluator, ETEngineInputSource
from etevolve.evolution import Gene, InputSpace
from etevolve.exceptions import EvaluationError
from etevolve.utils import InputCache

BASE = "http://engine.test/api/v3"


@pytest.fixture
def client() -> ETEngineClient:
    return ETEngineClient(base_url=BASE, timeout=5)


@pytest.fixture
def scenario(requests_mock):
    return requests_mock.post(f"{BASE}/scenarios/", json={"id": 42, "title": "API"})


def _calculation(requests_mock, payload, status_code=200):
    return requests_mock.put(f"{BASE}/scenarios/42", json=payload, status_code=status_code)


def test_create_scenario_stores_the_id(client, scenario) -> None:
    client.create_scenario()
    assert client.scenario_id == 42
    form = parse_qs(scenario.last_request.text)
    assert form["area_code"] == ["nl"]
    assert form["start_year"] == ["2011"]
    assert form["end_year"] == ["2030"]


def test_calculate_sends_inputs_fixed_values_and_query(client, scenario, requests_mock) -> None:
    calculation = _calculation(
        requests_mock,
        {"gqueries": {"etflex_score": {"present": 123, "future": 234.5, "unit": "#"}}},
    )
    result = client.calculate({"insulation": 3.0}, "etflex_score", fixed={"inhabitants": 2.2})

    assert result["future"] == 234.5
    assert scenario.call_count == 1
    form = parse_qs(calculation.last_request.text)
    assert form["gqueries[]"] == ["etflex_score"]
    assert form["autobalance"] == ["true"]
    assert form["reset"] == ["true"]
    assert form["scenario[user_values][insulation]"] == ["3.0"]
    assert form["scenario[user_values][inhabitants]"] == ["2.2"]


def test_scenario_is_created_once(client, scenario, requests_mock) -> None:
    _calculation(requests_mock, {"gqueries": {"q": {"future": 500}}})
    client.calculate({"a": 1.0}, "q")
    client.calculate({"a": 2.0}, "q")
    assert scenario.call_count == 1


def test_missing_query_result_raises(client, scenario, requests_mock) -> None:
    _calculation(requests_mock, {"errors": ["Input a out of range"]})
    with pytest.raises(EvaluationError) as err:
        client.calculate({"a": 1.0}, "q")
    assert err.value.context["errors"] == ["Input a out of range"]


def test_http_errors_raise_evaluation_error(client, scenario, requests_mock) -> None:
    _calculation(requests_mock, {"message": "boom"}, status_code=500)
    with pytest.raises(EvaluationError):
        client.calculate({"a": 1.0}, "q")


def test_invalid_json_raises_evaluation_error(client, scenario, requests_mock) -> None:
    requests_mock.put(f"{BASE}/scenarios/42", text="<html>maintenance</html>")
    with pytest.raises(EvaluationError):
        client.calculate({"a": 1.0}, "q")


@pytest.mark.parametrize("body", [["unexpected"], "text", 12])
def test_non_object_json_raises_evaluation_error(client, scenario, requests_mock, body) -> None:
    requests_mock.put(f"{BASE}/scenarios/42", json=body)
    with pytest.raises(EvaluationError):
        client.calculate({"a": 1.0}, "q")


def test_gene_is_invalid_when_the_remote_returns_a_list(client, scenario, requests_mock) -> None:
    requests_mock.put(f"{BASE}/scenarios/42", json=["unexpected"])
    gene = Gene({"a": 1.0})
    assert gene.evaluate_fitness(ETEngineEvaluator(client), "q") == -1
    assert not gene.is_valid()


def test_evaluator_returns_the_future_value(client, scenario, requests_mock) -> None:
    _calculation(requests_mock, {"gqueries": {"q": {"present": 1, "future": 812.25}}})
    evaluator = ETEngineEvaluator(client, fixed={"inhabitants": "2"})
    result = evaluator.evaluate({"a": 1.0}, "q")
    assert result.ok
    assert result.value == 812.25
    assert evaluator.fixed == {"inhabitants": 2.0}
    assert evaluator.concurrent_safe is False


def test_evaluator_reports_failures(client, scenario, requests_mock) -> None:
    _calculation(requests_mock, {"gqueries": {"q": {"present": 1, "future": None}}})
    result = ETEngineEvaluator(client).evaluate({"a": 1.0}, "q")
    assert not result.ok


def test_gene_is_invalid_when_the_remote_fails(client, scenario, requests_mock) -> None:
    _calculation(requests_mock, {}, status_code=502)
    gene = Gene({"a": 1.0})
    assert gene.evaluate_fitness(ETEngineEvaluator(client), "q") == -1
    assert not gene.is_valid()


def test_input_source_uses_the_cache(client, requests_mock, tmp_path) -> None:
    endpoint = requests_mock.get(
        f"{BASE}/inputs/insulation",
        json={"code": "insulation", "min": 0, "max": 10, "step": 0.5, "default": 1},
    )
    cache = InputCache(tmp_path / "cache")
    source = ETEngineInputSource(client, cache=cache)

    assert source.fetch("insulation") == {"min": 0.0, "max": 10.0, "step": 0.5}
    assert source.fetch("insulation") == {"min": 0.0, "max": 10.0, "step": 0.5}
    assert endpoint.call_count == 1
    assert (tmp_path / "cache" / "insulation.json").exists()

    space = InputSpace.load(["insulation"], source, rng=np.random.default_rng(0))
    assert space["insulation"].step_count == 20
    assert endpoint.call_count == 1


def test_incomplete_input_metadata_raises(client, requests_mock) -> None:
    requests_mock.get(f"{BASE}/inputs/broken", json={"code": "broken", "min": 0})
    with pytest.raises(EvaluationError):
        ETEngineInputSource(client).fetch("broken")
